"""
Taskweave - dependency-driven task scheduling with failure recovery.

Computes what may run now, what must wait and what is blocked by a cycle,
and decides how to react when a running task fails.
"""

from loguru import logger

__version__ = "0.1.0"
__author__ = "Taskweave Team"

from taskweave.core.exceptions import (
    CycleError,
    DuplicateTaskError,
    InvalidConditionError,
    NotFoundError,
    TaskweaveError,
)
from taskweave.recovery import ErrorDetector, RecoveryManager, RetryPolicyManager
from taskweave.scheduling import ConditionalDependency, Task, TaskRegistry, TaskStatus

# Library code stays silent unless the host application opts in.
logger.disable("taskweave")

__all__ = [
    "ConditionalDependency",
    "CycleError",
    "DuplicateTaskError",
    "ErrorDetector",
    "InvalidConditionError",
    "NotFoundError",
    "RecoveryManager",
    "RetryPolicyManager",
    "Task",
    "TaskRegistry",
    "TaskStatus",
    "TaskweaveError",
    "__version__",
]
