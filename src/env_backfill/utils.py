"""Utility functions for env-backfill."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> None:  # pragma: no cover
    """Configure loguru sinks.

    Args:
        log_level: Minimum level for all sinks
        log_file: Optional file sink, rotated at 10 MB
    """
    logger.remove()

    logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=False, colorize=True)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    logger.debug(f"Logging configured at level {log_level}")
