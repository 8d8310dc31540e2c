"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    taskweave_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    taskweave_debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    taskweave_log_dir: Path | None = Field(
        default=None,
        description="Directory for rotating log files (stderr only if unset)",
    )

    # Retry policy
    taskweave_max_retries: int = Field(
        default=3,
        ge=0,
        description="Maximum retry attempts for recoverable errors",
    )
    taskweave_initial_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Delay before the first retry in milliseconds",
    )
    taskweave_max_delay_ms: int = Field(
        default=60000,
        ge=0,
        description="Upper bound for any retry delay in milliseconds",
    )
    taskweave_backoff: Literal["linear", "exponential"] = Field(
        default="exponential",
        description="Backoff growth between retries",
    )

    # Recovery
    taskweave_error_strategy: Literal["continue", "stop", "ask"] = Field(
        default="continue",
        description="What to do once retries are exhausted",
    )

    # Persistence
    taskweave_snapshot_dir: Path = Field(
        default=Path(".taskweave"),
        description="Directory used by the file snapshot store",
    )

    @model_validator(mode="after")
    def check_delays(self) -> "Settings":
        """Reject an initial delay larger than the cap."""
        if self.taskweave_initial_delay_ms > self.taskweave_max_delay_ms:
            raise ValueError("taskweave_initial_delay_ms must not exceed taskweave_max_delay_ms")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.taskweave_max_retries
        3
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
