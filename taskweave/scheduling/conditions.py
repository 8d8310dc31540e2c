"""Condition evaluation for dependency references.

A dependency is satisfied once the referenced task reached a terminal
status and its condition holds for that status (or, for predicates, for
the task's result). These helpers are pure: they never touch the graph
and receive the referenced task's state through a lookup function.
"""

from typing import Any

from loguru import logger

from taskweave.core.exceptions import InvalidConditionError
from taskweave.scheduling.models import (
    TERMINAL_STATUSES,
    ConditionalDependency,
    DependencyLookup,
    DependencyRef,
    ExecutionCondition,
    TaskStatus,
)


def normalize_dependency(dep: DependencyRef | dict[str, Any]) -> ConditionalDependency:
    """
    Normalize a dependency reference to a ``ConditionalDependency``.

    Args:
        dep: Bare task id, mapping with ``task_id``/``condition`` keys,
            or an already structured dependency.

    Returns:
        ConditionalDependency. Bare ids get the ``success`` condition;
        structured dependencies are returned unchanged.

    Raises:
        InvalidConditionError: If the reference cannot be interpreted.

    Example:
        >>> normalize_dependency("build")
        ConditionalDependency(task_id='build', condition=<ExecutionCondition.SUCCESS: 'success'>)
    """
    if isinstance(dep, ConditionalDependency):
        return dep
    if isinstance(dep, str):
        return ConditionalDependency(task_id=dep, condition=ExecutionCondition.SUCCESS)
    if isinstance(dep, dict):
        if "task_id" not in dep:
            raise InvalidConditionError(f"Dependency mapping has no task_id: {dep!r}")
        return ConditionalDependency(
            task_id=dep["task_id"],
            condition=dep.get("condition", ExecutionCondition.SUCCESS),
        )
    raise InvalidConditionError(f"Invalid dependency reference: {dep!r}")


def evaluate_condition(
    dependency: ConditionalDependency,
    dep_status: TaskStatus,
    dep_result: Any = None,
) -> bool:
    """
    Evaluate whether a dependency condition is met.

    Status conditions look at ``dep_status`` only. Predicates are called
    with ``dep_result``; an exception raised by a predicate counts as
    "not met" and never propagates.

    Args:
        dependency: Normalized dependency.
        dep_status: Status of the referenced task.
        dep_result: Result payload of the referenced task.

    Returns:
        True if the condition holds.

    Raises:
        InvalidConditionError: If the condition is of an unknown kind.
    """
    condition = dependency.condition

    if isinstance(condition, ExecutionCondition):
        if condition == ExecutionCondition.SUCCESS:
            return dep_status == TaskStatus.COMPLETED
        if condition == ExecutionCondition.FAILURE:
            return dep_status == TaskStatus.FAILED
        return dep_status in TERMINAL_STATUSES

    if callable(condition):
        try:
            return bool(condition(dep_result))
        except Exception as e:
            logger.warning(
                f"Output-based condition on {dependency.task_id} raised {type(e).__name__}: {e}"
            )
            return False

    raise InvalidConditionError(f"Invalid condition type for dependency {dependency.task_id}")


def are_dependencies_ready(
    dependencies: list[DependencyRef],
    lookup: DependencyLookup,
) -> bool:
    """
    Check if all dependencies allow execution.

    A dependency whose task has not reached a terminal status (or is not
    registered at all) always blocks, whatever its condition.

    Args:
        dependencies: Dependency references of one task.
        lookup: Returns the referenced task's state, or None if unknown.

    Returns:
        True if every dependency is terminal and its condition holds.
    """
    for dep in dependencies:
        normalized = normalize_dependency(dep)
        state = lookup(normalized.task_id)

        if state is None or state.status not in TERMINAL_STATUSES:
            return False

        if not evaluate_condition(normalized, state.status, state.result):
            return False

    return True


def is_dependency_blocking(
    dependency: ConditionalDependency,
    dep_status: TaskStatus,
    dep_result: Any = None,
) -> bool:
    """Check if a single dependency would block execution."""
    if dep_status in TERMINAL_STATUSES:
        return not evaluate_condition(dependency, dep_status, dep_result)
    return True


def get_blockage_reason(
    dependencies: list[DependencyRef],
    lookup: DependencyLookup,
) -> str | None:
    """
    Get the reason why dependencies are not ready.

    Diagnostic only; scheduling decisions use ``are_dependencies_ready``.

    Args:
        dependencies: Dependency references of one task.
        lookup: Returns the referenced task's state, or None if unknown.

    Returns:
        Reason for the first blocking dependency, or None if nothing blocks.
    """
    for dep in dependencies:
        normalized = normalize_dependency(dep)
        state = lookup(normalized.task_id)

        if state is None:
            return f"Task {normalized.task_id} is not registered"

        if state.status not in TERMINAL_STATUSES:
            return f"Waiting for task {normalized.task_id} to complete"

        if not evaluate_condition(normalized, state.status, state.result):
            return (
                f"Condition not met: task {normalized.task_id} "
                f"did not satisfy {normalized.describe_condition()}"
            )

    return None
