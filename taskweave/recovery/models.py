"""Models for failure handling: retry policy, error records, recovery actions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taskweave.scheduling.models import utc_now


class BackoffType(str, Enum):
    """Growth of the delay between retries."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class ErrorStrategy(str, Enum):
    """What to do once an error can no longer be retried."""

    CONTINUE = "continue"  # Skip the failed task and carry on
    STOP = "stop"  # Halt and hand over to a human
    ASK = "ask"  # Ask the user what to do


class ErrorSeverity(str, Enum):
    """Severity levels for classified errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"  # Always needs manual intervention


class RetryPolicy(BaseModel):
    """Retry policy configuration. Delays are in milliseconds.

    Example:
        >>> policy = RetryPolicy(max_retries=5, backoff="linear")
        >>> policy.initial_delay
        1000
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0, description="Maximum retry attempts")
    initial_delay: int = Field(default=1000, ge=0, description="First retry delay (ms)")
    max_delay: int = Field(default=60000, ge=0, description="Cap on any delay (ms)")
    backoff: BackoffType = Field(default=BackoffType.EXPONENTIAL)

    @model_validator(mode="after")
    def check_delays(self) -> "RetryPolicy":
        """Ensure the cap is not below the initial delay."""
        if self.initial_delay > self.max_delay:
            raise ValueError("initial_delay must not exceed max_delay")
        return self


@dataclass
class ErrorInfo:
    """A failure reported by the execution dispatcher.

    ``retry_count`` is owned by the caller: the recovery manager reads it
    but never increments it.
    """

    subtask_id: str
    agent_id: str
    error: BaseException | str
    timestamp: datetime = field(default_factory=utc_now)
    retry_count: int = 0
    last_retry_at: datetime | None = None

    @property
    def message(self) -> str:
        """Error message text."""
        return str(self.error)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "subtask_id": self.subtask_id,
            "agent_id": self.agent_id,
            "error": self.message,
            "error_type": type(self.error).__name__,
            "timestamp": self.timestamp.isoformat(),
            "retry_count": self.retry_count,
            "last_retry_at": self.last_retry_at.isoformat() if self.last_retry_at else None,
        }


# =============================================================================
# RECOVERY ACTIONS
# =============================================================================


class RetryAction(BaseModel):
    """Run the task again after the advised delay."""

    model_config = ConfigDict(frozen=True)

    type: Literal["retry"] = "retry"


class ReassignAction(BaseModel):
    """Run the task on a different agent."""

    model_config = ConfigDict(frozen=True)

    type: Literal["reassign"] = "reassign"
    new_agent_id: str


class SplitAction(BaseModel):
    """Replace the task with smaller ones, chosen by an external policy."""

    model_config = ConfigDict(frozen=True)

    type: Literal["split"] = "split"
    subtask_id: str
    new_subtasks: list[str] = Field(default_factory=list)
    reason: str = ""


class SkipAction(BaseModel):
    """Give up on the task and continue with the rest."""

    model_config = ConfigDict(frozen=True)

    type: Literal["skip"] = "skip"


class ManualInterventionAction(BaseModel):
    """Stop automatic handling and hand over to a human."""

    model_config = ConfigDict(frozen=True)

    type: Literal["manual_intervention"] = "manual_intervention"
    reason: str


RecoveryAction = Annotated[
    RetryAction | ReassignAction | SplitAction | SkipAction | ManualInterventionAction,
    Field(discriminator="type"),
]


class ErrorHandlerResult(BaseModel):
    """Decision returned for a reported error.

    ``delay`` is advisory; the caller schedules the retry itself.
    """

    model_config = ConfigDict(frozen=True)

    action: RecoveryAction
    should_retry: bool
    delay: int | None = Field(default=None, description="Retry delay in milliseconds")


class ErrorStatistics(BaseModel):
    """Error counts aggregated from the error history."""

    model_config = ConfigDict(frozen=True)

    total_errors: int = 0
    errors_by_subtask: dict[str, int] = Field(default_factory=dict)
    errors_by_agent: dict[str, int] = Field(default_factory=dict)
