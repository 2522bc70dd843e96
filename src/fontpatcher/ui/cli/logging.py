"""Logging configuration for the command line."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


LOG_LEVEL_ENV = "FONTPATCHER_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_HANDLER_MARKER = "_fontpatcher_handler"


def level_for_verbosity(verbosity: int) -> int:
    """Map the ``-v`` count onto a logging level, honouring the environment."""
    override = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if override:
        level = logging.getLevelName(override)
        if isinstance(level, int):
            return level
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    verbosity: int = 0,
    *,
    log_file: Path | None = None,
    console: Console | None = None,
) -> None:
    """Install the Rich stderr handler and the optional plain-text file handler.

    Calling it again replaces the handlers installed previously.
    """
    root = logging.getLogger("fontpatcher")
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    level = level_for_verbosity(verbosity)
    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbosity >= 3,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setLevel(level)
    setattr(rich_handler, _HANDLER_MARKER, True)
    root.addHandler(rich_handler)

    effective = level
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        setattr(file_handler, _HANDLER_MARKER, True)
        root.addHandler(file_handler)
        effective = logging.DEBUG

    root.setLevel(effective)


__all__ = ["LOG_LEVEL_ENV", "level_for_verbosity", "setup_logging"]
