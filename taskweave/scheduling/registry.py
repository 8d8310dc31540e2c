"""Task registry - the scheduling façade.

Combines the dependency graph, the resolver and the condition evaluator
into the surface an execution dispatcher talks to: register tasks, ask
what is ready, report outcomes back.
"""

from collections.abc import Iterable
from typing import Any

from loguru import logger

from taskweave.core.exceptions import InvalidProgressError, InvalidStatusError, NotFoundError
from taskweave.scheduling.conditions import are_dependencies_ready, get_blockage_reason
from taskweave.scheduling.dependency_resolver import DependencyResolver
from taskweave.scheduling.graph import DependencyGraph
from taskweave.scheduling.models import (
    CycleResult,
    DependencyState,
    ExecutionOrder,
    ExecutionSummary,
    SubtaskStatus,
    Task,
    TaskStatus,
)

_SCHEDULABLE = (TaskStatus.PENDING, TaskStatus.WAITING)


class TaskRegistry:
    """
    Owns the tasks of one orchestration run and answers readiness queries.

    The registry never moves a task into IN_PROGRESS on its own; it only
    reports readiness. Status updates come from the caller, at most one
    in flight per task.

    Failing or skipping a task does not cascade: dependents with an unmet
    ``success`` condition stay pending until the caller marks them
    skipped, or forever.

    Example:
        >>> registry = TaskRegistry()
        >>> registry.add_task(Task(id="a"))
        >>> registry.add_task(Task(id="b", dependencies=["a"]))
        >>> [t.id for t in registry.get_ready_subtasks()]
        ['a']
        >>> registry.mark_completed("a")
        >>> [t.id for t in registry.get_ready_subtasks()]
        ['b']
    """

    def __init__(self) -> None:
        self._graph = DependencyGraph()
        self._resolver = DependencyResolver(self._graph)

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task]) -> "TaskRegistry":
        """Build a registry from tasks, in the given order."""
        registry = cls()
        registry.add_tasks(tasks)
        return registry

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_task(self, task: Task) -> None:
        """
        Register a task.

        Raises:
            DuplicateTaskError: If the id is already registered.
        """
        self._graph.add_task(task)

    def add_tasks(self, tasks: Iterable[Task]) -> None:
        """Register several tasks in order."""
        for task in tasks:
            self.add_task(task)

    def get_task(self, task_id: str) -> Task:
        """
        Get a registered task.

        Raises:
            NotFoundError: If the task is unknown.
        """
        task = self._graph.get_task(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def has_task(self, task_id: str) -> bool:
        """Check whether a task id is registered."""
        return task_id in self._graph

    def get_all_tasks(self) -> list[Task]:
        """Get all tasks in registration order."""
        return self._graph.get_all_tasks()

    # =========================================================================
    # STATUS UPDATES
    # =========================================================================

    def update_status(self, task_id: str, status: TaskStatus | str) -> None:
        """
        Update a task's status (see ``DependencyGraph.update_status``).

        Raises:
            InvalidStatusError: If ``status`` is not a known status value.
            NotFoundError: If the task is unknown.
        """
        try:
            new_status = TaskStatus(status)
        except ValueError:
            raise InvalidStatusError(f"Unknown task status: {status!r}") from None

        self._graph.update_status(task_id, new_status)
        logger.debug(f"Task {task_id} -> {new_status.value}")

    def mark_completed(self, task_id: str, result: Any = None) -> None:
        """Mark a task completed, optionally storing its result payload."""
        if result is not None:
            self.set_result(task_id, result)
        self.update_status(task_id, TaskStatus.COMPLETED)

    def mark_failed(self, task_id: str) -> None:
        """Mark a task failed."""
        self.update_status(task_id, TaskStatus.FAILED)

    def mark_skipped(self, task_id: str) -> None:
        """Mark a task skipped."""
        self.update_status(task_id, TaskStatus.SKIPPED)

    def set_result(self, task_id: str, result: Any) -> None:
        """Store a task's result payload for predicate conditions."""
        self.get_task(task_id).result = result

    def update_progress(self, task_id: str, progress: int) -> None:
        """
        Set a task's progress percentage.

        Raises:
            InvalidProgressError: If progress is outside 0-100.
            NotFoundError: If the task is unknown.
        """
        if progress < 0 or progress > 100:
            raise InvalidProgressError("Progress must be between 0 and 100")
        self.get_task(task_id).progress = progress

    def assign_task(self, task_id: str, agent_id: str | None) -> None:
        """Record which agent runs a task (None to unassign)."""
        self.get_task(task_id).assigned_to = agent_id

    def get_tasks_by_agent(self, agent_id: str) -> list[Task]:
        """Get tasks assigned to an agent."""
        return [t for t in self._graph.get_all_tasks() if t.assigned_to == agent_id]

    # =========================================================================
    # ORDERING
    # =========================================================================

    def detect_cycle(self) -> CycleResult:
        """Detect a cycle without raising."""
        return self._graph.detect_cycle()

    def get_execution_plan(self) -> ExecutionOrder:
        """
        Get the full execution plan.

        Raises:
            CycleError: If the graph contains a cycle.
            NotFoundError: If a dependency refers to an unregistered task.
        """
        return self._resolver.resolve()

    def get_execution_order(self) -> list[str]:
        """Get task IDs in topological order."""
        return self._resolver.get_execution_order()

    def get_parallel_levels(self) -> list[list[str]]:
        """Get batches of task IDs that can run concurrently."""
        return self._resolver.get_parallel_levels()

    def get_critical_path(self) -> list[str]:
        """Get the longest dependency chain."""
        return self._resolver.get_critical_path()

    # =========================================================================
    # READINESS
    # =========================================================================

    def _lookup(self, task_id: str) -> DependencyState | None:
        task = self._graph.get_task(task_id)
        if task is None:
            return None
        return DependencyState(status=task.status, result=task.result)

    def is_ready(self, task_id: str) -> bool:
        """Check whether a pending/waiting task may be dispatched now."""
        task = self.get_task(task_id)
        return task.status in _SCHEDULABLE and are_dependencies_ready(
            task.dependencies, self._lookup
        )

    def get_ready_subtasks(self) -> list[Task]:
        """Get pending/waiting tasks whose dependencies are all satisfied."""
        return [
            task
            for task in self._graph.get_all_tasks()
            if task.status in _SCHEDULABLE
            and are_dependencies_ready(task.dependencies, self._lookup)
        ]

    def get_waiting_subtasks(self) -> list[Task]:
        """Get pending/waiting tasks still blocked by a dependency."""
        return [
            task
            for task in self._graph.get_all_tasks()
            if task.status in _SCHEDULABLE
            and not are_dependencies_ready(task.dependencies, self._lookup)
        ]

    def get_blockage_reason(self, task_id: str) -> str | None:
        """Explain why a task's dependencies are not ready (None if they are)."""
        task = self.get_task(task_id)
        return get_blockage_reason(task.dependencies, self._lookup)

    def get_blocked_subtasks(self) -> dict[str, str]:
        """Map each waiting task id to the reason it is blocked."""
        blocked: dict[str, str] = {}
        for task in self.get_waiting_subtasks():
            reason = get_blockage_reason(task.dependencies, self._lookup)
            if reason is not None:
                blocked[task.id] = reason
        return blocked

    # =========================================================================
    # STATUS VIEWS
    # =========================================================================

    @staticmethod
    def _to_status(task: Task) -> SubtaskStatus:
        return SubtaskStatus(
            id=task.id,
            description=task.description,
            status=task.status,
            dependencies=list(task.dependencies),
            assigned_to=task.assigned_to,
            progress=task.progress,
        )

    def get_subtask_status(self, task_id: str) -> SubtaskStatus | None:
        """Get the status view of a task, or None if unknown."""
        task = self._graph.get_task(task_id)
        return self._to_status(task) if task else None

    def get_all_subtask_statuses(self) -> list[SubtaskStatus]:
        """Get status views for all tasks."""
        return [self._to_status(task) for task in self._graph.get_all_tasks()]

    def get_dependents(self, task_id: str) -> list[str]:
        """Get IDs of tasks depending on the given task."""
        return self._graph.get_dependents(task_id)

    def get_total_subtasks(self) -> int:
        """Get total number of tasks."""
        return self._graph.size()

    def get_subtasks_by_status(self) -> dict[TaskStatus, int]:
        """Count tasks per status (every status present, zero if unused)."""
        counts = {status: 0 for status in TaskStatus}
        for task in self._graph.get_all_tasks():
            counts[task.status] += 1
        return counts

    def get_execution_summary(self) -> ExecutionSummary:
        """
        Summarize the run.

        Returns:
            ExecutionSummary where ``completed`` includes skipped tasks and
            ``percentage`` is rounded half up.
        """
        counts = self.get_subtasks_by_status()
        total = self._graph.size()
        done = counts[TaskStatus.COMPLETED] + counts[TaskStatus.SKIPPED]
        percentage = (200 * done + total) // (2 * total) if total > 0 else 0

        return ExecutionSummary(
            total=total,
            completed=done,
            failed=counts[TaskStatus.FAILED],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            waiting=counts[TaskStatus.WAITING],
            pending=counts[TaskStatus.PENDING],
            percentage=percentage,
        )

    def is_all_completed(self) -> bool:
        """Check if every task is completed or skipped."""
        return all(
            task.status in (TaskStatus.COMPLETED, TaskStatus.SKIPPED)
            for task in self._graph.get_all_tasks()
        )

    def has_failed_subtasks(self) -> bool:
        """Check if any task failed."""
        return any(task.status == TaskStatus.FAILED for task in self._graph.get_all_tasks())

    def clear(self) -> None:
        """Remove all tasks."""
        self._graph.clear()

    def get_graph(self) -> DependencyGraph:
        """Get the underlying graph (for visualization)."""
        return self._graph

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._graph

    def __len__(self) -> int:
        return self._graph.size()
