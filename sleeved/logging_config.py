"""Logging setup (loguru)."""

import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with one at the given level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan> - <level>{message}</level>",
    )
