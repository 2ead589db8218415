"""Process-level logging configuration."""

import sys

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

_CONFIGURED_LEVEL: str | None = None


def configure_logging(level: str = "WARNING") -> None:
    """Route loguru through a stderr RichHandler. Idempotent per level."""
    global _CONFIGURED_LEVEL
    level = level.upper()
    if level == _CONFIGURED_LEVEL:
        return

    handler = RichHandler(
        console=Console(file=sys.stderr),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    logger.remove()
    logger.add(handler, level=level, format="{name}: {message}", backtrace=False, diagnose=False)
    _CONFIGURED_LEVEL = level
