"""Recovery manager - decides what to do when a running task fails.

Combines the error detector, the retry policy and the configured
``ErrorStrategy``. Decisions are returned as data; the manager never
sleeps, schedules or mutates the task list.
"""

from collections import Counter

from loguru import logger

from taskweave.core.config import Settings, get_settings
from taskweave.recovery.error_detector import ErrorDetector
from taskweave.recovery.models import (
    ErrorHandlerResult,
    ErrorInfo,
    ErrorSeverity,
    ErrorStatistics,
    ErrorStrategy,
    ManualInterventionAction,
    ReassignAction,
    RetryAction,
    SkipAction,
    SplitAction,
)
from taskweave.recovery.retry_policy import RetryPolicyManager
from taskweave.scheduling.models import Task


class RecoveryManager:
    """
    Handle task errors with retry policies and strategies.

    Per task, the error history moves from empty to "retry scheduled" and
    either back to empty (the caller clears it after a successful retry)
    or to a terminal decision once retries are exhausted.

    Example:
        >>> manager = RecoveryManager(strategy="continue")
        >>> result = manager.handle_error(
        ...     ErrorInfo(subtask_id="fetch", agent_id="w1", error="ECONNRESET")
        ... )
        >>> result.should_retry, result.delay
        (True, 1000)
    """

    def __init__(
        self,
        retry_policy: RetryPolicyManager | None = None,
        strategy: ErrorStrategy | str = ErrorStrategy.CONTINUE,
        error_detector: ErrorDetector | None = None,
    ) -> None:
        """
        Initialize the recovery manager.

        Args:
            retry_policy: Backoff policy. Defaults to ``RetryPolicyManager.create_default()``.
            strategy: Action once an error cannot be retried.
            error_detector: Error classifier.
        """
        self._retry_policy = retry_policy or RetryPolicyManager.create_default()
        self._strategy = ErrorStrategy(strategy)
        self._error_detector = error_detector or ErrorDetector()
        self._error_history: dict[str, list[ErrorInfo]] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RecoveryManager":
        """Build a manager from environment settings."""
        settings = settings or get_settings()
        return cls(
            retry_policy=RetryPolicyManager.from_settings(settings),
            strategy=settings.taskweave_error_strategy,
        )

    # =========================================================================
    # ERROR HANDLING
    # =========================================================================

    def handle_error(self, error_info: ErrorInfo) -> ErrorHandlerResult:
        """
        Decide how to react to a task error.

        The error is always recorded. Recoverable errors within the retry
        budget get a retry with an advisory delay; anything else falls
        through to ``determine_action``.

        Args:
            error_info: The reported failure, with the caller's retry count.

        Returns:
            ErrorHandlerResult describing the next action.
        """
        self._record_error(error_info)

        if self._should_retry(error_info):
            delay = self._retry_policy.calculate_delay(error_info.retry_count)
            logger.info(
                f"Retrying {error_info.subtask_id} in {delay}ms "
                f"(attempt {error_info.retry_count + 1})"
            )
            return ErrorHandlerResult(action=RetryAction(), should_retry=True, delay=delay)

        return self.determine_action(error_info)

    def determine_action(self, error_info: ErrorInfo) -> ErrorHandlerResult:
        """
        Determine the terminal action for an error that will not be retried.

        Critical errors always require manual intervention; otherwise the
        configured strategy decides.
        """
        severity = self._error_detector.get_severity(error_info.error)

        if severity == ErrorSeverity.CRITICAL:
            logger.warning(f"Critical error on {error_info.subtask_id}: {error_info.message}")
            return ErrorHandlerResult(
                action=ManualInterventionAction(reason="Critical error detected"),
                should_retry=False,
            )

        if self._strategy == ErrorStrategy.STOP:
            action = ManualInterventionAction(reason="Error occurred and stop strategy is set")
        elif self._strategy == ErrorStrategy.ASK:
            action = ManualInterventionAction(reason="User intervention requested")
        else:
            action = SkipAction()

        logger.info(
            f"Giving up on {error_info.subtask_id} ({severity.value}): {action.type}"
        )
        return ErrorHandlerResult(action=action, should_retry=False)

    def _should_retry(self, error_info: ErrorInfo) -> bool:
        if not self._error_detector.is_recoverable(error_info.error):
            return False
        return self._retry_policy.should_retry(error_info.retry_count)

    def _record_error(self, error_info: ErrorInfo) -> None:
        self._error_history.setdefault(error_info.subtask_id, []).append(error_info)

    # =========================================================================
    # HISTORY
    # =========================================================================

    def get_error_history(self, subtask_id: str) -> list[ErrorInfo]:
        """Get recorded errors for a task, oldest first."""
        return list(self._error_history.get(subtask_id, []))

    def clear_error_history(self, subtask_id: str) -> None:
        """Forget a task's errors, e.g. after a retry succeeded."""
        self._error_history.pop(subtask_id, None)

    def clear_all_error_history(self) -> None:
        """Forget all recorded errors."""
        self._error_history.clear()

    def get_statistics(self) -> ErrorStatistics:
        """Aggregate error counts from the history."""
        by_subtask: Counter[str] = Counter()
        by_agent: Counter[str] = Counter()

        for errors in self._error_history.values():
            for error in errors:
                by_subtask[error.subtask_id] += 1
                by_agent[error.agent_id] += 1

        return ErrorStatistics(
            total_errors=sum(by_subtask.values()),
            errors_by_subtask=dict(by_subtask),
            errors_by_agent=dict(by_agent),
        )

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    @property
    def strategy(self) -> ErrorStrategy:
        """Current error strategy."""
        return self._strategy

    @strategy.setter
    def strategy(self, strategy: ErrorStrategy | str) -> None:
        self._strategy = ErrorStrategy(strategy)

    @property
    def retry_policy(self) -> RetryPolicyManager:
        """Current retry policy."""
        return self._retry_policy

    @retry_policy.setter
    def retry_policy(self, policy: RetryPolicyManager) -> None:
        self._retry_policy = policy

    # =========================================================================
    # DECLARATIVE ACTIONS
    # =========================================================================

    def reassign_subtask(self, subtask_id: str, new_agent_id: str) -> ReassignAction:
        """Suggest running a task on another agent. Nothing is reassigned here."""
        logger.debug(f"Suggesting reassignment of {subtask_id} to {new_agent_id}")
        return ReassignAction(new_agent_id=new_agent_id)

    def split_subtask(
        self,
        task: Task,
        suggested_subtasks: list[str] | None = None,
    ) -> SplitAction:
        """
        Suggest splitting a task.

        No decomposition happens here; the action only signals that an
        external policy has to break the task up.

        Args:
            task: Task to split.
            suggested_subtasks: IDs of replacement tasks, if already known.
        """
        return SplitAction(
            subtask_id=task.id,
            new_subtasks=list(suggested_subtasks or []),
            reason=f"Subtask splitting requested for {task.id}: {task.description}",
        )
