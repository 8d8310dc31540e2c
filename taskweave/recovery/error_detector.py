"""Error detector - classifies raw errors for the recovery manager.

Classification looks at the exception type where Python gives a clear
signal and otherwise at the lower-cased message text. Unknown errors are
not recoverable.
"""

from taskweave.recovery.models import ErrorInfo, ErrorSeverity

NETWORK_PATTERNS = (
    "econnreset",
    "etimedout",
    "econnrefused",
    "connection reset",
    "connection refused",
)
TIMEOUT_PATTERNS = ("timeout", "timed out")
RATE_LIMIT_PATTERNS = ("rate limit", "too many requests")

CRITICAL_PATTERNS = (
    "fatal",
    "critical",
    "disk full",
    "no space left on device",
    "out of memory",
)
HIGH_PATTERNS = (
    "permission denied",
    "access denied",
    "security",
)


def _message(error: BaseException | str) -> str:
    return str(error).lower()


def _matches(error: BaseException | str, patterns: tuple[str, ...]) -> bool:
    message = _message(error)
    return any(pattern in message for pattern in patterns)


class ErrorDetector:
    """Detect and classify errors."""

    def is_recoverable(self, error: BaseException | str) -> bool:
        """
        Check if an error is worth retrying.

        Network resets, timeouts and rate limits are recoverable;
        everything else is not.
        """
        if isinstance(error, (ConnectionError, TimeoutError)):
            return True
        return self.is_network_error(error) or self.is_timeout(error) or self.is_rate_limit(error)

    def get_severity(self, error: BaseException | str) -> ErrorSeverity:
        """Classify how serious an error is."""
        if isinstance(error, MemoryError) or _matches(error, CRITICAL_PATTERNS):
            return ErrorSeverity.CRITICAL

        if isinstance(error, PermissionError) or _matches(error, HIGH_PATTERNS):
            return ErrorSeverity.HIGH

        if (
            isinstance(error, TimeoutError)
            or _matches(error, TIMEOUT_PATTERNS)
            or self.is_rate_limit(error)
        ):
            return ErrorSeverity.MEDIUM

        return ErrorSeverity.LOW

    def create_error_info(
        self,
        subtask_id: str,
        agent_id: str,
        error: BaseException | str,
        retry_count: int = 0,
    ) -> ErrorInfo:
        """Build an ``ErrorInfo`` stamped with the current time."""
        return ErrorInfo(
            subtask_id=subtask_id,
            agent_id=agent_id,
            error=error,
            retry_count=retry_count,
        )

    def is_timeout(self, error: BaseException | str) -> bool:
        """Check if an error is a timeout."""
        return isinstance(error, TimeoutError) or _matches(error, TIMEOUT_PATTERNS)

    def is_network_error(self, error: BaseException | str) -> bool:
        """Check if an error is a network error."""
        return isinstance(error, ConnectionError) or _matches(error, NETWORK_PATTERNS)

    def is_rate_limit(self, error: BaseException | str) -> bool:
        """Check if an error is a rate limit."""
        return _matches(error, RATE_LIMIT_PATTERNS)
