"""Loguru sink configuration for hosts that want Taskweave's log output."""

import sys

from loguru import logger

from taskweave.core.config import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure loguru based on settings.

    Replaces the default handler, re-enables the ``taskweave`` namespace
    (disabled at import) and adds a stderr sink plus an optional rotating
    file sink.

    Args:
        settings: Optional settings override. Uses cached settings if not provided.
    """
    settings = settings or get_settings()

    logger.remove()  # Remove default handler
    logger.enable("taskweave")

    level = "DEBUG" if settings.taskweave_debug else settings.taskweave_log_level

    logger.add(
        sys.stderr,
        level=level,
        format=LOG_FORMAT,
        colorize=True,
    )

    if settings.taskweave_log_dir is not None:
        settings.taskweave_log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(settings.taskweave_log_dir / "taskweave_{time:YYYY-MM-DD}.log"),
            rotation="1 day",
            retention="7 days",
            level=level,
            format=LOG_FORMAT,
        )
