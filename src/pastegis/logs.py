"""Loguru sink configuration."""

import sys

from loguru import logger


def configure_logging(level: str) -> None:
    """Send log records at ``level`` and above to stderr."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
