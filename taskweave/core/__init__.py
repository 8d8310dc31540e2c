"""Core module - configuration, exceptions and logging setup."""

from taskweave.core.config import Settings, clear_settings_cache, get_settings
from taskweave.core.exceptions import (
    CycleError,
    DuplicateTaskError,
    InvalidConditionError,
    InvalidProgressError,
    InvalidStatusError,
    NotFoundError,
    SnapshotError,
    TaskweaveError,
)
from taskweave.core.logging import configure_logging

__all__ = [
    "CycleError",
    "DuplicateTaskError",
    "InvalidConditionError",
    "InvalidProgressError",
    "InvalidStatusError",
    "NotFoundError",
    "Settings",
    "SnapshotError",
    "TaskweaveError",
    "clear_settings_cache",
    "configure_logging",
    "get_settings",
]
