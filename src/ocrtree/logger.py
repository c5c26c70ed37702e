"""Logging setup for ocrtree.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed by applications (the CLI does it through :func:`configure_logging`).
"""

import logging
from typing import Optional

from rich.logging import RichHandler

from ocrtree.config import settings


def get_logger() -> logging.Logger:
    """Return the package logger all module loggers propagate to."""
    return logging.getLogger("ocrtree")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a rich handler to the package logger.

    Args:
        level: Log level name, defaults to ``settings.log_level``.

    Returns:
        The configured package logger.
    """
    logger = get_logger()

    # Only one handler, calling this twice must not duplicate output
    if not logger.handlers:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)

    logger.setLevel((level or settings.log_level).upper())
    return logger
