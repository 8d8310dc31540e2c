"""Dependency-driven scheduling.

This module provides the scheduling core:
- Models (tasks, conditional dependencies, query results)
- Condition evaluation (dependency reference -> satisfied or blocking)
- Dependency graph (indegree/dependents adjacency, cycle detection)
- Dependency resolution (topological order and parallel levels)
- Task registry (readiness queries and status transitions)
"""

from taskweave.scheduling.conditions import (
    are_dependencies_ready,
    evaluate_condition,
    get_blockage_reason,
    is_dependency_blocking,
    normalize_dependency,
)
from taskweave.scheduling.dependency_resolver import DependencyResolver
from taskweave.scheduling.graph import DependencyGraph
from taskweave.scheduling.models import (
    TERMINAL_STATUSES,
    ConditionalDependency,
    CycleResult,
    DependencyNode,
    DependencyState,
    ExecutionCondition,
    ExecutionOrder,
    ExecutionSummary,
    SubtaskStatus,
    Task,
    TaskStatus,
)
from taskweave.scheduling.registry import TaskRegistry

__all__ = [
    # Models
    "TERMINAL_STATUSES",
    "ConditionalDependency",
    "CycleResult",
    "DependencyNode",
    "DependencyState",
    "ExecutionCondition",
    "ExecutionOrder",
    "ExecutionSummary",
    "SubtaskStatus",
    "Task",
    "TaskStatus",
    # Conditions
    "are_dependencies_ready",
    "evaluate_condition",
    "get_blockage_reason",
    "is_dependency_blocking",
    "normalize_dependency",
    # Graph & resolution
    "DependencyGraph",
    "DependencyResolver",
    # Registry
    "TaskRegistry",
]
