"""Retry policy - maps a retry attempt number to a backoff delay."""

from typing import Any

from taskweave.core.config import Settings, get_settings
from taskweave.recovery.models import BackoffType, RetryPolicy


class RetryPolicyManager:
    """
    Stateless wrapper around a ``RetryPolicy``.

    Example:
        >>> manager = RetryPolicyManager.create_default()
        >>> [manager.calculate_delay(n) for n in range(4)]
        [1000, 2000, 4000, 8000]
    """

    def __init__(self, policy: RetryPolicy | None = None) -> None:
        self._policy = policy or RetryPolicy()

    def calculate_delay(self, retry_count: int) -> int:
        """
        Calculate the delay before a retry attempt.

        Args:
            retry_count: Retries already made (0 for the first retry).

        Returns:
            Delay in milliseconds, capped at ``max_delay``.
        """
        policy = self._policy

        if retry_count <= 0:
            return policy.initial_delay

        if policy.backoff == BackoffType.LINEAR:
            delay = policy.initial_delay * (retry_count + 1)
        else:
            delay = policy.initial_delay * 2**retry_count

        return min(delay, policy.max_delay)

    def should_retry(self, retry_count: int) -> bool:
        """Check if another attempt fits in the retry budget."""
        return retry_count < self._policy.max_retries

    def get_policy(self) -> RetryPolicy:
        """Get a copy of the policy."""
        return self._policy.model_copy()

    def update_policy(self, **changes: Any) -> None:
        """
        Update policy fields.

        Raises:
            pydantic.ValidationError: If the resulting policy is invalid.
        """
        self._policy = RetryPolicy.model_validate({**self._policy.model_dump(), **changes})

    @classmethod
    def create_default(cls) -> "RetryPolicyManager":
        """Exponential backoff, 3 retries, 1s initial delay, 60s cap."""
        return cls(RetryPolicy())

    @classmethod
    def create_custom(cls, **overrides: Any) -> "RetryPolicyManager":
        """Default policy with the given fields overridden."""
        return cls(RetryPolicy(**overrides))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RetryPolicyManager":
        """Build the policy from environment settings."""
        settings = settings or get_settings()
        return cls(
            RetryPolicy(
                max_retries=settings.taskweave_max_retries,
                initial_delay=settings.taskweave_initial_delay_ms,
                max_delay=settings.taskweave_max_delay_ms,
                backoff=settings.taskweave_backoff,
            )
        )
