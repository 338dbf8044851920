from __future__ import annotations

import io
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

import rscpatch.utils.console as console_module
from rscpatch.utils.console import (
    RSCPATCH_THEME,
    colorize_severity,
    confirm,
    get_raw_console,
    is_interactive,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
    set_color,
)


@pytest.fixture
def captured_console() -> Generator[io.StringIO, None, None]:
    """Route console output to a buffer without color."""
    buffer = io.StringIO()
    console = Console(file=buffer, theme=RSCPATCH_THEME, no_color=True, width=120, highlight=False)

    with patch.object(console_module, "_console", console):
        yield buffer

    reconfigure_console()


@pytest.mark.unit
class TestStatusLines:
    """Tests for the print_* helpers."""

    def test_prefixes(self, captured_console: io.StringIO) -> None:
        """Test each helper prints its prefix."""
        print_success("done")
        print_error("failed")
        print_warning("careful")
        print_info("note")

        assert captured_console.getvalue().splitlines() == [
            "[OK] done",
            "[ERROR] failed",
            "[WARNING] careful",
            "note",
        ]

    def test_custom_prefix(self, captured_console: io.StringIO) -> None:
        print_info("scanning", prefix=">>")

        assert captured_console.getvalue() == ">> scanning\n"


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_renders_rows(self, captured_console: io.StringIO) -> None:
        """Test headers default to the keys of the first row."""
        print_table(
            [{"Package": "next", "Patched": "15.3.8"}],
            title="Vulnerable Dependencies",
            column_styles={"Package": {"style": "bold", "no_wrap": True}},
        )

        output = captured_console.getvalue()
        assert "Vulnerable" in output
        assert "Dependencies" in output
        assert "Package" in output
        assert "15.3.8" in output

    def test_empty_prints_nothing(self, captured_console: io.StringIO) -> None:
        print_table([], title="Nothing")

        assert captured_console.getvalue() == ""

    def test_explicit_headers(self, captured_console: io.StringIO) -> None:
        print_table([{"a": "1", "b": "2"}], headers=["b"])

        output = captured_console.getvalue()
        assert "b" in output
        assert "1" not in output


@pytest.mark.unit
class TestConfirm:
    """Tests for confirm."""

    @pytest.mark.parametrize(
        "answer,default,expected",
        [
            ("y", False, True),
            ("YES", False, True),
            ("n", True, False),
            ("no", True, False),
            ("", True, True),
            ("", False, False),
            ("maybe", True, True),
        ],
    )
    def test_answers(
        self, captured_console: io.StringIO, answer: str, default: bool, expected: bool
    ) -> None:
        with patch("builtins.input", return_value=answer):
            assert confirm("Apply fixes?", default=default) is expected

    def test_prompt_suffix(self, captured_console: io.StringIO) -> None:
        with patch("builtins.input", return_value="y"):
            confirm("Apply fixes?", default=True)

        assert captured_console.getvalue() == "Apply fixes? [Y/n]: "

    def test_prompt_suffix_default_no(self, captured_console: io.StringIO) -> None:
        """Test the lowercase suffix is printed literally, not as markup."""
        with patch("builtins.input", return_value="n"):
            confirm("Apply fixes?")

        assert captured_console.getvalue() == "Apply fixes? [y/N]: "

    @pytest.mark.parametrize("error", [KeyboardInterrupt, EOFError])
    def test_interrupt_declines(self, captured_console: io.StringIO, error: type) -> None:
        """Test Ctrl+C and EOF decline even when the default is yes."""
        with patch("builtins.input", side_effect=error):
            assert confirm("Apply fixes?", default=True) is False


@pytest.mark.unit
class TestConsoleHelpers:
    """Tests for color handling and small helpers."""

    def test_set_color_rebuilds_console(self) -> None:
        """Test forcing color off yields a no-color console."""
        try:
            set_color(False)
            assert get_raw_console().no_color is True
        finally:
            set_color(None)

    def test_console_is_cached(self) -> None:
        try:
            assert get_raw_console() is get_raw_console()
        finally:
            reconfigure_console()

    def test_is_interactive(self) -> None:
        with patch("sys.stdin") as stdin:
            stdin.isatty.return_value = True
            assert is_interactive() is True

            stdin.isatty.side_effect = ValueError("closed")
            assert is_interactive() is False

    @pytest.mark.parametrize(
        "severity,expected",
        [
            ("critical", "[bold red]critical[/bold red]"),
            ("medium", "[yellow]medium[/yellow]"),
            ("unknown", "[magenta]unknown[/magenta]"),
            ("other", "other"),
        ],
    )
    def test_colorize_severity(self, severity: str, expected: str) -> None:
        assert colorize_severity(severity) == expected
