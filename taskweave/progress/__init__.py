"""Progress reporting and display helpers (rendering only, no scheduling)."""

from taskweave.progress.formatters import (
    InlineFormatter,
    JsonFormatter,
    ProgressFormatter,
    ProgressBarFormatter,
    ProgressState,
    SubtaskInfo,
    build_progress_state,
    create_formatter,
)
from taskweave.progress.layout import display_levels, has_degraded_level

__all__ = [
    "InlineFormatter",
    "JsonFormatter",
    "ProgressFormatter",
    "ProgressBarFormatter",
    "ProgressState",
    "SubtaskInfo",
    "build_progress_state",
    "create_formatter",
    "display_levels",
    "has_degraded_level",
]
