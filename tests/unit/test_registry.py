"""Unit tests for TaskRegistry."""

import pytest

from taskweave.core.exceptions import (
    DuplicateTaskError,
    InvalidProgressError,
    InvalidStatusError,
    NotFoundError,
)
from taskweave.scheduling.models import ConditionalDependency, Task, TaskStatus
from taskweave.scheduling.registry import TaskRegistry


def ready_ids(registry: TaskRegistry) -> list[str]:
    return [task.id for task in registry.get_ready_subtasks()]


class TestRegistration:
    """Tests for adding and looking up tasks."""

    def test_add_and_get(self, registry: TaskRegistry) -> None:
        """Registered tasks can be looked up."""
        assert registry.get_total_subtasks() == 4
        assert registry.get_task("B").description == "Build backend"
        assert "A" in registry
        assert registry.has_task("Z") is False

    def test_duplicate_rejected(self, registry: TaskRegistry) -> None:
        """Ids are unique."""
        with pytest.raises(DuplicateTaskError, match="Task with id A already exists"):
            registry.add_task(Task(id="A"))

    def test_unknown_task(self, registry: TaskRegistry) -> None:
        """Lookups and updates on unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            registry.get_task("Z")
        with pytest.raises(NotFoundError):
            registry.update_status("Z", TaskStatus.COMPLETED)
        with pytest.raises(KeyError):
            registry.mark_failed("Z")

    def test_subtask_status_view(self, registry: TaskRegistry) -> None:
        """Status views mirror the task; unknown ids give None."""
        view = registry.get_subtask_status("D")

        assert view is not None
        assert view.status == TaskStatus.PENDING
        assert view.dependencies == ["B", "C"]
        assert registry.get_subtask_status("Z") is None

    def test_status_string_is_coerced(self, registry: TaskRegistry) -> None:
        """Status values may be passed as plain strings."""
        registry.update_status("A", "in_progress")

        assert registry.get_task("A").status == TaskStatus.IN_PROGRESS

    def test_unknown_status_rejected(self, registry: TaskRegistry) -> None:
        """Unknown status strings raise a typed error and change nothing."""
        with pytest.raises(InvalidStatusError, match="Unknown task status: 'done'"):
            registry.update_status("A", "done")

        with pytest.raises(ValueError):
            registry.update_status("A", "finished")

        assert registry.get_task("A").status == TaskStatus.PENDING


class TestReadiness:
    """Tests for readiness queries."""

    def test_only_roots_ready_initially(self, registry: TaskRegistry) -> None:
        """Only tasks without dependencies start ready."""
        assert ready_ids(registry) == ["A"]
        assert [t.id for t in registry.get_waiting_subtasks()] == ["B", "C", "D"]

    def test_completion_unblocks_dependents(self, registry: TaskRegistry) -> None:
        """Completing a task makes its dependents ready."""
        registry.mark_completed("A")

        assert ready_ids(registry) == ["B", "C"]

        registry.mark_completed("B")
        assert ready_ids(registry) == ["C"]

        registry.mark_completed("C")
        assert ready_ids(registry) == ["D"]

    def test_in_progress_task_not_ready(self, registry: TaskRegistry) -> None:
        """Running tasks are not reported ready again."""
        registry.update_status("A", TaskStatus.IN_PROGRESS)

        assert ready_ids(registry) == []
        assert registry.is_ready("A") is False

    def test_no_cascading_cancellation(self, registry: TaskRegistry) -> None:
        """A failed dependency leaves success-gated dependents pending."""
        registry.mark_failed("A")

        assert ready_ids(registry) == []
        assert registry.get_task("B").status == TaskStatus.PENDING
        assert registry.get_task("D").status == TaskStatus.PENDING
        assert registry.get_blockage_reason("B") == (
            "Condition not met: task A did not satisfy success"
        )
        assert registry.has_failed_subtasks()

    def test_failure_condition(self) -> None:
        """A failure-gated task runs only when its dependency fails."""
        registry = TaskRegistry.from_tasks(
            [
                Task(id="deploy"),
                Task(
                    id="rollback",
                    dependencies=[ConditionalDependency(task_id="deploy", condition="failure")],
                ),
            ]
        )

        registry.mark_completed("deploy")
        assert "rollback" not in ready_ids(registry)

        registry.update_status("deploy", TaskStatus.FAILED)
        assert "rollback" in ready_ids(registry)

    def test_any_condition_accepts_skipped(self) -> None:
        """An any-gated task runs after its dependency is skipped."""
        registry = TaskRegistry.from_tasks(
            [
                Task(id="lint"),
                Task(id="report", dependencies=[{"task_id": "lint", "condition": "any"}]),
            ]
        )

        registry.mark_skipped("lint")

        assert ready_ids(registry) == ["report"]

    def test_predicate_on_result(self) -> None:
        """Predicates see the dependency's result payload."""
        registry = TaskRegistry.from_tasks(
            [
                Task(id="score"),
                Task(
                    id="publish",
                    dependencies=[
                        ConditionalDependency(
                            task_id="score", condition=lambda result: result["score"] > 0.8
                        )
                    ],
                ),
            ]
        )

        registry.mark_completed("score", result={"score": 0.5})
        assert registry.is_ready("publish") is False
        assert "output-based condition" in registry.get_blockage_reason("publish")

        registry.set_result("score", {"score": 0.9})
        assert registry.is_ready("publish") is True

    def test_unregistered_dependency_blocks(self) -> None:
        """Dependencies on unknown tasks block with an explanation."""
        registry = TaskRegistry.from_tasks([Task(id="orphan", dependencies=["ghost"])])

        assert ready_ids(registry) == []
        assert registry.get_blocked_subtasks() == {"orphan": "Task ghost is not registered"}

    def test_blocked_subtasks(self, registry: TaskRegistry) -> None:
        """Each waiting task is mapped to its first blocking dependency."""
        registry.update_status("A", TaskStatus.IN_PROGRESS)

        blocked = registry.get_blocked_subtasks()

        assert blocked["B"] == "Waiting for task A to complete"
        assert blocked["D"] == "Waiting for task B to complete"
        assert "A" not in blocked


class TestProgressAndAssignment:
    """Tests for progress and agent assignment."""

    def test_update_progress_bounds(self, registry: TaskRegistry) -> None:
        """Progress outside 0-100 is rejected."""
        registry.update_progress("A", 40)
        assert registry.get_task("A").progress == 40

        with pytest.raises(InvalidProgressError):
            registry.update_progress("A", 101)
        with pytest.raises(ValueError):
            registry.update_progress("A", -1)

    def test_assign_task(self, registry: TaskRegistry) -> None:
        """Tasks can be looked up by agent."""
        registry.assign_task("B", "agent-1")
        registry.assign_task("C", "agent-1")
        registry.assign_task("C", None)

        assert [t.id for t in registry.get_tasks_by_agent("agent-1")] == ["B"]


class TestSummary:
    """Tests for the execution summary."""

    def test_empty_registry(self) -> None:
        """An empty registry reports zero percent."""
        registry = TaskRegistry()

        summary = registry.get_execution_summary()

        assert summary.total == 0
        assert summary.percentage == 0
        assert registry.is_all_completed() is True

    def test_counts(self, registry: TaskRegistry) -> None:
        """Counts cover every status and skipped counts as done."""
        registry.mark_completed("A")
        registry.mark_skipped("B")
        registry.update_status("C", TaskStatus.IN_PROGRESS)

        summary = registry.get_execution_summary()

        assert summary.total == 4
        assert summary.completed == 2
        assert summary.in_progress == 1
        assert summary.pending == 1
        assert summary.failed == 0
        assert summary.percentage == 50

        counts = registry.get_subtasks_by_status()
        assert counts[TaskStatus.SKIPPED] == 1
        assert counts[TaskStatus.READY] == 0

    def test_percentage_rounds_half_up(self) -> None:
        """1 of 3 rounds to 33, 2 of 3 to 67, 1 of 8 to 13."""
        registry = TaskRegistry.from_tasks([Task(id=f"t{i}") for i in range(3)])
        registry.mark_completed("t0")
        assert registry.get_execution_summary().percentage == 33

        registry.mark_completed("t1")
        assert registry.get_execution_summary().percentage == 67

        eighths = TaskRegistry.from_tasks([Task(id=f"t{i}") for i in range(8)])
        eighths.mark_completed("t0")
        assert eighths.get_execution_summary().percentage == 13

    def test_all_completed(self, registry: TaskRegistry) -> None:
        """All tasks completed or skipped means done."""
        for task_id in ("A", "B", "C"):
            registry.mark_completed(task_id)
        assert registry.is_all_completed() is False

        registry.mark_skipped("D")
        assert registry.is_all_completed() is True
        assert registry.get_execution_summary().percentage == 100

    def test_clear(self, registry: TaskRegistry) -> None:
        """Clearing removes all tasks."""
        registry.clear()

        assert len(registry) == 0
        assert registry.get_ready_subtasks() == []
