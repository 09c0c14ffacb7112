"""Logging for buildbox.

Two channels:
- ConsoleLogger: the messages a user is meant to read (Rich console, stderr)
- the stdlib ``buildbox`` logger: diagnostics, silent unless debugging

Usage:
    from buildbox.logging import get_logger
    logger = get_logger(__name__)
    logger.debug("Running command: %s", cmd)

Debug output is enabled by ``buildbox --debug`` or BUILDBOX_DEBUG=1.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

ROOT_LOGGER = "buildbox"
DEBUG_ENV = "BUILDBOX_DEBUG"

_configured = False


def _get_log_level() -> int:
    if os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG
    return logging.WARNING


def _make_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=level == logging.DEBUG,
        rich_tracebacks=False,
        markup=False,
    )
    handler.setLevel(level)
    return handler


def _init_logging() -> None:
    """Attach the stderr handler to the ``buildbox`` logger, once."""
    global _configured
    if _configured:
        return

    level = _get_log_level()
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    if not root_logger.handlers:
        root_logger.addHandler(_make_handler(level))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` inside the ``buildbox`` namespace."""
    _init_logging()
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_debug(enabled: bool = True) -> None:
    """Switch the ``buildbox`` logger between DEBUG and WARNING."""
    _init_logging()
    level = logging.DEBUG if enabled else logging.WARNING
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if isinstance(handler, RichHandler):
            # show_path is fixed at construction
            root_logger.removeHandler(handler)
            root_logger.addHandler(_make_handler(level))
        else:
            handler.setLevel(level)


class ConsoleLogger:
    """User-facing logger used by commands and executors.

    Messages are printed on a Rich console and mirrored to the stdlib
    ``buildbox`` logger so ``--debug`` runs keep a structured trace.
    """

    def __init__(self, console: Console | None = None, name: str = "buildbox.cli") -> None:
        self.console = console or Console(stderr=True)
        self._logger = get_logger(name)

    def info(self, message: str) -> None:
        self._logger.info(message)
        self.console.print(f"[dim]{escape(message)}[/dim]", highlight=False)

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def error(self, message: str) -> None:
        # Printed below; the stderr handler would repeat an ERROR record
        self._logger.debug("error: %s", message)
        self.console.print(f"[red]Error: {escape(message)}[/red]", highlight=False)
