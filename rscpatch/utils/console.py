"""
Terminal output for rscpatch commands, rendered with Rich.

Everything the user is meant to read (scan results, fix plans, prompts)
goes through this module. Diagnostics go through
:mod:`rscpatch.utils.logger` instead.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional

from rich.table import Table
from rich.markup import escape
from rich.theme import Theme
from rich.console import Console

# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------

RSCPATCH_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
        "path": "underline",
    }
)

SEVERITY_COLORS = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
    "unknown": "magenta",
}

# ---------------------------------------------------------------------------
# Console singleton
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()
_color_override: Optional[bool] = None


def _should_use_color() -> bool:
    if _color_override is not None:
        return _color_override
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=RSCPATCH_THEME,
                    no_color=not use_color,
                    highlight=False,
                )
    return _console


def set_color(enabled: Optional[bool]) -> None:
    """Force color on or off; ``None`` returns to auto-detection.

    The console is rebuilt on next use.
    """
    global _console, _color_override
    with _console_lock:
        _color_override = enabled
        _console = None


def reconfigure_console() -> None:
    """Drop the cached console so the next call re-reads the environment."""
    global _console
    with _console_lock:
        _console = None


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning")


def print_info(message: str, *, prefix: str = "") -> None:
    text = f"{prefix} {message}" if prefix else message
    _get_console().print(text, style="info")


def print_plain(message: str = "", **kwargs: Any) -> None:
    """Print Rich markup with no theme style applied."""
    _get_console().print(message, **kwargs)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
) -> None:
    """Render rows of dictionaries as a Rich table.

    Args:
        data: Row dictionaries. Nothing is printed when empty.
        headers: Column order; defaults to the keys of the first row.
        title: Table title.
        caption: Table caption.
        column_styles: ``header -> {"style", "justify", "no_wrap"}``.
        row_styler: Callback returning a style for a whole row.
    """
    if not data:
        return

    if headers is None:
        headers = list(data[0].keys())

    table = Table(title=title, caption=caption, show_header=True, header_style="bold")

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "left"),
            no_wrap=config.get("no_wrap", False),
            overflow="fold",
        )

    for row in data:
        style = row_styler(row) if row_styler else None
        table.add_row(*(str(row.get(h, "")) for h in headers), style=style)

    _get_console().print(table)


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def confirm(message: str, *, default: bool = False) -> bool:
    """Ask a yes/no question on the terminal.

    ``y``/``yes`` confirm and ``n``/``no`` decline. Empty or unrecognized
    input returns ``default``. Ctrl+C and EOF decline.
    """
    console = _get_console()
    suffix = " [Y/n]: " if default else " [y/N]: "
    console.print(f"{message}{escape(suffix)}", end="", style="info")

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False
    return default


def is_interactive() -> bool:
    """Return ``True`` when stdin is attached to a terminal."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, OSError, ValueError):
        return False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_raw_console() -> Console:
    return _get_console()


def colorize_severity(severity: str) -> str:
    """Wrap a severity label in Rich markup for its color."""
    color = SEVERITY_COLORS.get(severity.lower())
    return f"[{color}]{severity}[/{color}]" if color else severity
