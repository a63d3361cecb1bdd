"""Library-side logging for kbuild.

Every module logs through ``get_logger(<module>)``, which lives under the
``kbuild`` namespace. Until something calls ``configure_logger`` the namespace
writes plain lines to stderr so stdout stays free for cargo's own output. The
CLI replaces that handler with its rich handler at startup.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

__all__ = ["ROOT_LOGGER_NAME", "configure_logger", "get_logger"]

ROOT_LOGGER_NAME = "kbuild"
_configured = False


class _StageFormatter(logging.Formatter):
    """``WARNING [kbuild.generate] message``, colored by level on a terminal."""

    _COLORS = {
        logging.DEBUG: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[31m",
    }
    _RESET = "\033[0m"

    def __init__(self, *, color: bool) -> None:
        super().__init__(fmt="%(levelname)s [%(name)s] %(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        prefix = self._COLORS.get(record.levelno) if self.color else None
        return f"{prefix}{message}{self._RESET}" if prefix else message


def configure_logger(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
    force: bool = False,
) -> None:
    """Attach a single handler to the ``kbuild`` logger.

    ``handler`` wins over ``stream``; without either, records go to stderr.
    A second call is ignored unless ``force`` is set.
    """
    global _configured
    if _configured and not force:
        return

    if handler is None:
        stream = stream or sys.stderr
        handler = logging.StreamHandler(stream)
        handler.setFormatter(_StageFormatter(color=stream.isatty()))

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    """``get_logger("kconfig")`` -> the ``kbuild.kconfig`` logger."""
    if not _configured:
        configure_logger()

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME)
