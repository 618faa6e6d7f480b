"""Logging setup — stdlib logging rendered on stderr by Rich.

stdout belongs to git while a filter runs, so every handler writes to
stderr. Nothing here runs at import time; the CLI calls ``configure_logging``
once per process and hands named loggers to the components that need them.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "sopsfilter"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "warning", *, console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the package logger and return it."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_LEVELS.get(level, logging.WARNING))
    logger.handlers.clear()
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=level == "debug",
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, e.g. ``get_logger("clean")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
