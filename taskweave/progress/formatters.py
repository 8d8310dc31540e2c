"""Progress state and text formatters for a running registry."""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from taskweave.scheduling.models import TaskStatus, utc_now
from taskweave.scheduling.registry import TaskRegistry

ProgressFormat = Literal["inline", "progress", "json"]

STATUS_ICONS: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "⏸️",
    TaskStatus.WAITING: "⏳",
    TaskStatus.READY: "✅",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.COMPLETED: "✅",
    TaskStatus.FAILED: "❌",
    TaskStatus.SKIPPED: "⏭️",
}


class SubtaskInfo(BaseModel):
    """One task as shown in a progress report."""

    id: str
    description: str
    status: TaskStatus
    assigned_to: str | None = None
    progress: int | None = None
    blocked_by: str | None = None


class ProgressState(BaseModel):
    """Snapshot of run progress for display."""

    total_subtasks: int = 0
    completed_subtasks: int = 0
    in_progress_subtasks: int = 0
    waiting_subtasks: int = 0
    failed_subtasks: int = 0
    progress_percentage: int = 0
    active_agents: int = 0
    subtasks: list[SubtaskInfo] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


def build_progress_state(registry: TaskRegistry, active_agents: int = 0) -> ProgressState:
    """
    Build a progress state from a registry.

    Pending and waiting tasks both count as waiting here; blocked tasks
    carry the reason they are blocked.
    """
    summary = registry.get_execution_summary()
    blocked = registry.get_blocked_subtasks()

    subtasks = [
        SubtaskInfo(
            id=task.id,
            description=task.description,
            status=task.status,
            assigned_to=task.assigned_to,
            progress=task.progress,
            blocked_by=blocked.get(task.id),
        )
        for task in registry.get_all_tasks()
    ]

    return ProgressState(
        total_subtasks=summary.total,
        completed_subtasks=summary.completed,
        in_progress_subtasks=summary.in_progress,
        waiting_subtasks=summary.waiting + summary.pending,
        failed_subtasks=summary.failed,
        progress_percentage=summary.percentage,
        active_agents=active_agents,
        subtasks=subtasks,
    )


class ProgressFormatter(ABC):
    """Render a progress state as text."""

    @abstractmethod
    def format(self, state: ProgressState) -> str:
        """Format the state."""


class InlineFormatter(ProgressFormatter):
    """Progress bar followed by one status line per task."""

    def __init__(self, bar_width: int = 20) -> None:
        self.bar_width = bar_width

    def format(self, state: ProgressState) -> str:
        lines = [
            f"[{self._bar(state.progress_percentage)}] {state.progress_percentage}% "
            f"({state.completed_subtasks}/{state.total_subtasks})",
            f"Active Agents: {state.active_agents}",
        ]

        if state.subtasks:
            lines.append("")
            lines.append("Subtasks:")
            for subtask in state.subtasks:
                label = subtask.description or subtask.id
                status_text = subtask.status.value.replace("_", " ")
                lines.append(f"  {STATUS_ICONS[subtask.status]} {label} ({status_text})")
                if subtask.blocked_by:
                    lines.append(f"    {subtask.blocked_by}")

        return "\n".join(lines)

    def _bar(self, percentage: int) -> str:
        filled = round(percentage / 100 * self.bar_width)
        return "=" * filled + " " * (self.bar_width - filled)


class ProgressBarFormatter(ProgressFormatter):
    """Wide progress bar with a one-line summary and a failure warning."""

    def __init__(self, bar_width: int = 40) -> None:
        self.bar_width = bar_width

    def format(self, state: ProgressState) -> str:
        filled = round(state.progress_percentage / 100 * self.bar_width)
        bar = "█" * filled + "░" * (self.bar_width - filled)

        lines = [
            f"Progress: [{bar}] {state.progress_percentage}%",
            f"Total: {state.total_subtasks} | Done: {state.completed_subtasks} | "
            f"Active: {state.in_progress_subtasks} | Waiting: {state.waiting_subtasks}",
        ]

        if state.failed_subtasks > 0:
            lines.append("")
            lines.append(f"⚠️  {state.failed_subtasks} task(s) failed")

        return "\n".join(lines)


class JsonFormatter(ProgressFormatter):
    """Machine-readable JSON output."""

    def format(self, state: ProgressState) -> str:
        return json.dumps(state.model_dump(mode="json"), indent=2)


def create_formatter(fmt: ProgressFormat = "inline") -> ProgressFormatter:
    """
    Create a formatter by name.

    Raises:
        ValueError: If the format is unknown.
    """
    if fmt == "inline":
        return InlineFormatter()
    if fmt == "progress":
        return ProgressBarFormatter()
    if fmt == "json":
        return JsonFormatter()
    raise ValueError(f"Unknown progress format: {fmt}")
