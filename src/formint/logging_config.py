"""Logging setup for formint.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
CLI calls ``setup_logging`` once to route them through rich.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from formint.config import settings


def setup_logging(level: Optional[str] = None, console: Optional[Console] = None) -> logging.Logger:
    """Configure the ``formint`` logger hierarchy.

    Args:
        level: Log level name (default from settings).
        console: Console to log to (stderr by default).

    Returns:
        The package root logger.
    """
    level_name = (level or settings.log_level).upper()
    logger = logging.getLogger("formint")
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
