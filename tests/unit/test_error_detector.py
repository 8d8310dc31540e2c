"""Unit tests for ErrorDetector."""

import pytest

from taskweave.recovery.error_detector import ErrorDetector
from taskweave.recovery.models import ErrorSeverity


@pytest.fixture
def detector() -> ErrorDetector:
    return ErrorDetector()


class TestRecoverability:
    """Tests for is_recoverable."""

    @pytest.mark.parametrize(
        "error",
        [
            "ECONNRESET",
            "socket hang up: connection reset by peer",
            "connect ECONNREFUSED 127.0.0.1:5432",
            "Request timeout after 30s",
            "429 Too Many Requests",
            "Rate limit exceeded",
        ],
    )
    def test_transient_messages(self, detector: ErrorDetector, error: str) -> None:
        """Network, timeout and rate-limit messages are recoverable."""
        assert detector.is_recoverable(error) is True

    def test_transient_exception_types(self, detector: ErrorDetector) -> None:
        """Connection and timeout exceptions are recoverable whatever their text."""
        assert detector.is_recoverable(ConnectionResetError("peer went away"))
        assert detector.is_recoverable(TimeoutError())

    @pytest.mark.parametrize(
        "error",
        ["Syntax error in generated code", "disk full", ValueError("bad input")],
    )
    def test_other_errors(self, detector: ErrorDetector, error: object) -> None:
        """Anything else is not recoverable."""
        assert detector.is_recoverable(error) is False


class TestSeverity:
    """Tests for get_severity."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            ("FATAL: database is corrupt", ErrorSeverity.CRITICAL),
            ("Disk full", ErrorSeverity.CRITICAL),
            (OSError("No space left on device"), ErrorSeverity.CRITICAL),
            (MemoryError(), ErrorSeverity.CRITICAL),
            ("Permission denied: /etc/shadow", ErrorSeverity.HIGH),
            (PermissionError("nope"), ErrorSeverity.HIGH),
            ("security policy violation", ErrorSeverity.HIGH),
            ("operation timed out", ErrorSeverity.MEDIUM),
            ("rate limit exceeded", ErrorSeverity.MEDIUM),
            ("ECONNRESET", ErrorSeverity.LOW),
            ("something odd happened", ErrorSeverity.LOW),
        ],
    )
    def test_severity(self, detector: ErrorDetector, error: object, expected: ErrorSeverity) -> None:
        """Errors map to the expected severity."""
        assert detector.get_severity(error) == expected

    def test_critical_wins_over_timeout(self, detector: ErrorDetector) -> None:
        """The most severe match decides."""
        assert detector.get_severity("critical: timeout in writer") == ErrorSeverity.CRITICAL


class TestHelpers:
    """Tests for the narrower predicates and ErrorInfo creation."""

    def test_predicates(self, detector: ErrorDetector) -> None:
        """Each predicate recognises its own class of error."""
        assert detector.is_timeout("ETIMEDOUT while reading") is False
        assert detector.is_network_error("ETIMEDOUT while reading") is True
        assert detector.is_timeout("Timeout") is True
        assert detector.is_rate_limit("too many requests") is True
        assert detector.is_network_error("rate limit") is False

    def test_create_error_info(self, detector: ErrorDetector) -> None:
        """ErrorInfo is stamped and carries the retry count."""
        info = detector.create_error_info("task-1", "agent-1", RuntimeError("boom"), retry_count=2)

        assert info.subtask_id == "task-1"
        assert info.retry_count == 2
        assert info.message == "boom"
        assert info.timestamp is not None
        assert info.to_dict()["error_type"] == "RuntimeError"
