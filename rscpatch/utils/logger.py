"""
Logging setup for rscpatch.

Every module logs through a child of the ``rscpatch`` logger obtained from
:func:`get_logger`. Nothing is printed until the CLI calls
:func:`setup_logging`; when rscpatch is imported as a library the records
fall through to a :class:`logging.NullHandler`.

Scan results are never logged. They are printed through
:mod:`rscpatch.utils.console`; logging is for diagnostics only.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from rscpatch.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "rscpatch"

_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name with ANSI escapes."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not (self.use_color and _stderr_supports_color()):
            return super().format(record)

        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        # Handlers share records; restore the plain name afterwards
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _stderr_supports_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stderr.isatty()
    except (AttributeError, OSError):
        return False


def verbosity_to_level(verbosity: int) -> int:
    """Map the CLI's ``-v`` count to a logging level.

    ``0`` shows warnings, ``1`` adds info messages and ``2`` or more adds
    debug output (package-manager commands, per-advisory decisions).
    """
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.WARNING,
    verbose: bool = False,
    use_color: bool = True,
    stream: Optional[IO[str]] = None,
) -> None:
    """Attach a single stderr handler to the ``rscpatch`` logger.

    Calling it again replaces the previous handler, so the CLI can
    reconfigure logging between invocations in the same process (tests do).

    Args:
        level: Threshold for the handler and the logger.
        verbose: Include timestamps and logger names.
        use_color: Color level names when stderr is a terminal.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=use_color and not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``rscpatch`` or one of its children.

    ``get_logger("resolver")`` and ``get_logger("rscpatch.resolver")`` name
    the same logger.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    return _configured


def disable_logging() -> None:
    """Silence rscpatch logging and forget any previous setup."""
    global _configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _configured = False
