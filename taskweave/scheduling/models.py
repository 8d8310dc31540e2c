"""Pydantic models for dependency-driven scheduling.

This module defines the data structures shared by the task graph, the
condition evaluator, the dependency resolver and the task registry:
task records, conditional dependency references, graph nodes and the
result types returned by scheduling queries.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskweave.core.exceptions import InvalidConditionError


def utc_now() -> datetime:
    """Timezone-aware current time used for all task timestamps."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================


class TaskStatus(str, Enum):
    """Lifecycle status of a task.

    PENDING -> WAITING -> READY -> IN_PROGRESS -> COMPLETED | FAILED,
    optionally SKIPPED. Only the caller moves a task between states.
    """

    PENDING = "pending"
    WAITING = "waiting"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.SKIPPED})


class ExecutionCondition(str, Enum):
    """Status-based condition a dependency has to meet."""

    SUCCESS = "success"
    FAILURE = "failure"
    ANY = "any"


ConditionPredicate = Callable[[Any], bool]


# =============================================================================
# DEPENDENCIES
# =============================================================================


class ConditionalDependency(BaseModel):
    """Dependency on another task gated by a condition.

    The condition is either an ``ExecutionCondition`` or a predicate that
    receives the referenced task's result payload.

    Example:
        >>> dep = ConditionalDependency(task_id="lint", condition="failure")
        >>> dep.condition
        <ExecutionCondition.FAILURE: 'failure'>
        >>> gated = ConditionalDependency(
        ...     task_id="score", condition=lambda result: result["score"] > 0.8
        ... )
    """

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(
        ...,
        min_length=1,
        description="ID of the task this dependency refers to",
    )
    condition: ExecutionCondition | ConditionPredicate = Field(
        default=ExecutionCondition.SUCCESS,
        description="Status condition or predicate over the referenced task's result",
    )

    @field_validator("condition", mode="before")
    @classmethod
    def validate_condition(cls, v: Any) -> Any:
        """Coerce status strings and reject anything that is not a condition."""
        if isinstance(v, ExecutionCondition):
            return v
        if isinstance(v, str):
            try:
                return ExecutionCondition(v.lower())
            except ValueError:
                raise InvalidConditionError(f"Unknown execution condition: {v!r}") from None
        if callable(v):
            return v
        raise InvalidConditionError(f"Invalid condition type: {type(v).__name__}")

    @property
    def is_predicate(self) -> bool:
        """Whether the condition is a caller-supplied predicate."""
        return not isinstance(self.condition, ExecutionCondition)

    def describe_condition(self) -> str:
        """Human-readable name of the condition."""
        if isinstance(self.condition, ExecutionCondition):
            return self.condition.value
        return "output-based condition"


DependencyRef = str | ConditionalDependency


class DependencyState(NamedTuple):
    """Status and result of a referenced task as seen by the evaluator."""

    status: TaskStatus
    result: Any = None


DependencyLookup = Callable[[str], DependencyState | None]


# =============================================================================
# TASKS
# =============================================================================


class Task(BaseModel):
    """A schedulable unit of work.

    Dependencies are declared once, at creation; bare ids are shorthand
    for a ``success`` condition.

    Example:
        >>> task = Task(
        ...     id="deploy",
        ...     description="Deploy to staging",
        ...     dependencies=["build", {"task_id": "tests", "condition": "any"}],
        ... )
        >>> task.dependency_ids()
        ['build', 'tests']
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique task identifier",
    )
    description: str = Field(
        default="",
        description="What the task does",
    )
    dependencies: list[DependencyRef] = Field(
        default_factory=list,
        description="Task IDs or conditional dependencies this task waits on",
    )
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        description="Current lifecycle status",
    )
    assigned_to: str | None = Field(
        default=None,
        description="ID of the agent or executor running the task",
    )
    progress: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Progress percentage (0-100)",
    )
    result: Any = Field(
        default=None,
        description="Result payload, available to predicate conditions of dependents",
    )
    created_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def dependency_ids(self) -> list[str]:
        """IDs referenced by this task's dependencies, in declaration order."""
        return [dep if isinstance(dep, str) else dep.task_id for dep in self.dependencies]

    def has_predicate_conditions(self) -> bool:
        """Whether any dependency uses a caller-supplied predicate."""
        return any(
            isinstance(dep, ConditionalDependency) and dep.is_predicate
            for dep in self.dependencies
        )

    @property
    def is_terminal(self) -> bool:
        """Whether the task reached a terminal status."""
        return self.status in TERMINAL_STATUSES


# =============================================================================
# GRAPH & QUERY RESULTS
# =============================================================================


@dataclass
class DependencyNode:
    """A task in the dependency graph plus its adjacency bookkeeping."""

    task: Task
    dependents: list[str] = field(default_factory=list)
    indegree: int = 0


class CycleResult(BaseModel):
    """Outcome of cycle detection."""

    model_config = ConfigDict(frozen=True)

    has_cycle: bool
    cycle: list[str] | None = Field(
        default=None,
        description="Task IDs forming the cycle, in dependency order",
    )


class ExecutionOrder(BaseModel):
    """Topological order plus the parallel levels it was built from."""

    model_config = ConfigDict(frozen=True)

    order: list[str] = Field(default_factory=list)
    parallel_levels: list[list[str]] = Field(default_factory=list)

    @property
    def total_levels(self) -> int:
        """Number of parallel levels."""
        return len(self.parallel_levels)


class SubtaskStatus(BaseModel):
    """Status view of a single task."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    status: TaskStatus
    dependencies: list[DependencyRef] = Field(default_factory=list)
    assigned_to: str | None = None
    progress: int | None = None


class ExecutionSummary(BaseModel):
    """Aggregate counts for a scheduling run.

    ``completed`` counts skipped tasks as done, matching ``percentage``.
    """

    model_config = ConfigDict(frozen=True)

    total: int = 0
    completed: int = 0
    failed: int = 0
    in_progress: int = 0
    waiting: int = 0
    pending: int = 0
    percentage: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return self.model_dump()
