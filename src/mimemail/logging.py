"""Logging helpers for mimemail.

Modules log through ``logging.getLogger(__name__)``. This module adds a
``TRACE`` level below ``DEBUG`` for SMTP wire traces and an optional Rich
console handler for the ``mimemail`` logger tree.

Examples:
    >>> from mimemail.logging import init_logging, get_logger
    >>> logger = init_logging("DEBUG")  # doctest: +SKIP
    >>> get_logger("reports").name
    'mimemail.reports'
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["ROOT_LOGGER_NAME", "TRACE_LEVEL", "get_logger", "init_logging"]

ROOT_LOGGER_NAME = "mimemail"

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def init_logging(level: int | str = "INFO", *, console: Console | None = None) -> logging.Logger:
    """Attach a Rich console handler to the ``mimemail`` logger.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Level name (``"TRACE"``, ``"DEBUG"``...) or number.
        console: Rich console to write to. Defaults to stderr.

    Returns:
        The configured ``mimemail`` logger.

    Raises:
        ValueError: If *level* is not a known level name.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the ``mimemail`` namespace.

    Args:
        name: Child name. Names already prefixed with ``mimemail`` are kept
            as-is; None returns the package logger.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
