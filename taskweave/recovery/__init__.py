"""Error recovery - retry policies, error classification and recovery decisions."""

from taskweave.recovery.error_detector import ErrorDetector
from taskweave.recovery.models import (
    BackoffType,
    ErrorHandlerResult,
    ErrorInfo,
    ErrorSeverity,
    ErrorStatistics,
    ErrorStrategy,
    ManualInterventionAction,
    ReassignAction,
    RecoveryAction,
    RetryAction,
    RetryPolicy,
    SkipAction,
    SplitAction,
)
from taskweave.recovery.recovery_manager import RecoveryManager
from taskweave.recovery.retry_policy import RetryPolicyManager

__all__ = [
    # Models
    "BackoffType",
    "ErrorHandlerResult",
    "ErrorInfo",
    "ErrorSeverity",
    "ErrorStatistics",
    "ErrorStrategy",
    "RetryPolicy",
    # Actions
    "ManualInterventionAction",
    "ReassignAction",
    "RecoveryAction",
    "RetryAction",
    "SkipAction",
    "SplitAction",
    # Components
    "ErrorDetector",
    "RecoveryManager",
    "RetryPolicyManager",
]
