from __future__ import annotations

import json
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from rscpatch.__version__ import __version__
from rscpatch.cli import cli, main
from rscpatch.utils.console import reconfigure_console
from rscpatch.utils.logger import disable_logging


@pytest.fixture(autouse=True)
def reset_output() -> Generator[None, None, None]:
    """Detach log handlers and the console from the runner's streams."""
    yield
    disable_logging()
    reconfigure_console()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Configuration that keeps installed-version lookups off subprocesses."""
    path = tmp_path / "rscpatch.toml"
    path.write_text("[rscpatch]\nuse_package_manager = false\n", encoding="utf-8")
    return path


def _project(root: Path, dependencies: dict) -> Path:
    project = root / "project"
    project.mkdir()
    manifest = project / "package.json"
    manifest.write_text(
        json.dumps({"name": "web", "dependencies": dependencies}, indent=2) + "\n",
        encoding="utf-8",
    )
    return manifest


@pytest.mark.unit
class TestCliGroup:
    """Tests for the rscpatch command group."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"rscpatch {__version__}"

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "check" in result.output
        assert "fix" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test an invalid configuration file stops with exit status 1."""
        bad = tmp_path / "bad.toml"
        bad.write_text("[rscpatch]\nunknown = 1\n", encoding="utf-8")
        _project(tmp_path, {})

        result = runner.invoke(cli, ["-c", str(bad), "check", str(tmp_path / "project")])

        assert result.exit_code == 1
        assert "Unknown configuration keys: unknown" in result.output

    def test_main_usage_error(self) -> None:
        """Test main() maps a usage error to exit status 2."""
        with patch("sys.argv", ["rscpatch", "no-such-command"]):
            assert main() == 2


@pytest.mark.unit
class TestCheckCommand:
    """Tests for the check command."""

    def test_vulnerable_project(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        """Test a vulnerable manifest exits 1 and shows the planned bump."""
        _project(tmp_path, {"next": "15.3.4"})

        result = runner.invoke(
            cli, ["-c", str(config_file), "check", str(tmp_path / "project"), "--format", "simple"]
        )

        assert result.exit_code == 1
        assert "Checking for 5 known vulnerabilities" in result.output
        assert "Scanned 1 package.json file(s)" in result.output
        assert "next: 15.3.4 -> 15.3.8" in result.output

    def test_table_output(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        _project(tmp_path, {"next": "14.3.0-canary.80"})

        result = runner.invoke(cli, ["-c", str(config_file), "check", str(tmp_path / "project")])

        assert result.exit_code == 1
        assert "Vulnerable Dependencies" in result.output
        assert "Notes:" in result.output
        assert "Found 1 vulnerable package.json file(s)" in result.output

    def test_markup_in_specifier_is_literal(
        self, runner: CliRunner, tmp_path: Path, config_file: Path
    ) -> None:
        """Test bracketed manifest text is printed, not parsed as rich markup."""
        _project(tmp_path, {"next": "file:[/vendor]/next"})

        result = runner.invoke(
            cli,
            ["-c", str(config_file), "check", str(tmp_path / "project")],
            env={"COLUMNS": "200"},
        )

        assert result.exit_code == 1
        assert "Unexpected error" not in result.output
        assert "Vulnerable Dependencies" in result.output
        assert "[/vendor]" in result.output

    def test_clean_project(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        _project(tmp_path, {"next": "16.1.0", "react": "19.2.3"})

        result = runner.invoke(cli, ["-c", str(config_file), "check", str(tmp_path / "project")])

        assert result.exit_code == 0
        assert "No vulnerable packages found!" in result.output

    def test_json_output(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        """Test JSON output is machine readable and has no banner."""
        _project(tmp_path, {"react-server-dom-webpack": "19.0.0"})

        result = runner.invoke(
            cli, ["-c", str(config_file), "check", str(tmp_path / "project"), "-f", "json"]
        )

        data = json.loads(result.stdout)
        assert result.exit_code == 1
        assert data["vulnerable"] is True
        assert data["count"] == 1
        fix = data["files"][0]["fixes"][0]
        assert fix["package"] == "react-server-dom-webpack"
        assert fix["new_specifier"] == "19.0.3"
        assert fix["cves"][0] == "CVE-2025-66478"

    def test_json_without_manifests(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(cli, ["-c", str(config_file), "check", str(empty), "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"vulnerable": False, "reason": "no-package-json"}

    def test_lockfile_scanning_follows_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test the config disables lock files unless --lockfiles is given."""
        config = tmp_path / "rscpatch.toml"
        config.write_text(
            "[rscpatch]\nuse_package_manager = false\nscan_lockfiles = false\n",
            encoding="utf-8",
        )
        manifest = _project(tmp_path, {"next": "16.1.0"})
        (manifest.parent / "package-lock.json").write_text(
            json.dumps({"packages": {"node_modules/react-server-dom-webpack": {"version": "19.1.0"}}}),
            encoding="utf-8",
        )
        project = str(manifest.parent)

        from_config = runner.invoke(cli, ["-c", str(config), "check", project])
        from_flag = runner.invoke(cli, ["-c", str(config), "check", project, "--lockfiles"])

        assert from_config.exit_code == 0
        assert from_flag.exit_code == 1
        assert "Lock File Findings" in from_flag.output


@pytest.mark.unit
class TestFixCommand:
    """Tests for the fix command."""

    def test_apply_without_install(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        """Test --yes --no-install rewrites package.json only."""
        manifest = _project(tmp_path, {"next": "^15.3.0"})

        with patch("rscpatch.commands.fix.run_install") as run_install:
            result = runner.invoke(
                cli,
                ["-c", str(config_file), "fix", str(manifest.parent), "--yes", "--no-install"],
            )

        assert result.exit_code == 0
        assert json.loads(manifest.read_text(encoding="utf-8"))["dependencies"]["next"] == "^15.3.8"
        run_install.assert_not_called()

    def test_dry_run(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        manifest = _project(tmp_path, {"next": "15.3.4"})
        original = manifest.read_text(encoding="utf-8")

        result = runner.invoke(cli, ["-c", str(config_file), "fix", str(manifest.parent), "--dry-run"])

        assert result.exit_code == 0
        assert "Dry run - no changes made." in result.output
        assert manifest.read_text(encoding="utf-8") == original

    def test_non_interactive_requires_yes(
        self, runner: CliRunner, tmp_path: Path, config_file: Path
    ) -> None:
        """Test fixes are not applied without --yes when stdin is not a terminal."""
        manifest = _project(tmp_path, {"next": "15.3.4"})
        original = manifest.read_text(encoding="utf-8")

        with patch("rscpatch.commands.fix.is_interactive", return_value=False):
            result = runner.invoke(cli, ["-c", str(config_file), "fix", str(manifest.parent)])

        assert result.exit_code == 1
        assert "use --yes" in result.output
        assert manifest.read_text(encoding="utf-8") == original

    def test_declined_prompt(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        manifest = _project(tmp_path, {"next": "15.3.4"})
        original = manifest.read_text(encoding="utf-8")

        with patch("rscpatch.commands.fix.is_interactive", return_value=True):
            result = runner.invoke(
                cli, ["-c", str(config_file), "fix", str(manifest.parent)], input="n\n"
            )

        assert result.exit_code == 1
        assert "Fix skipped" in result.output
        assert manifest.read_text(encoding="utf-8") == original

    def test_confirmed_prompt_installs(
        self, runner: CliRunner, tmp_path: Path, config_file: Path
    ) -> None:
        """Test an accepted prompt applies fixes and refreshes the lock file."""
        manifest = _project(tmp_path, {"react-server-dom-webpack": "~19.1.0"})
        (manifest.parent / "pnpm-lock.yaml").write_text("lockfileVersion: '9.0'\n", encoding="utf-8")

        with patch("rscpatch.commands.fix.is_interactive", return_value=True), patch(
            "rscpatch.commands.fix.run_install", return_value=True
        ) as run_install:
            result = runner.invoke(
                cli,
                ["-c", str(config_file), "fix", str(manifest.parent), "--lockfile-only"],
                input="y\n",
            )

        assert result.exit_code == 0
        assert "lock files updated" in result.output
        assert (
            json.loads(manifest.read_text(encoding="utf-8"))["dependencies"]["react-server-dom-webpack"]
            == "~19.1.4"
        )
        run_install.assert_called_once_with(
            "pnpm", manifest.parent.resolve(), lockfile_only=True
        )

    def test_failed_install(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        manifest = _project(tmp_path, {"next": "15.3.4"})

        with patch("rscpatch.commands.fix.run_install", return_value=False):
            result = runner.invoke(cli, ["-c", str(config_file), "fix", str(manifest.parent), "-y"])

        assert result.exit_code == 1
        assert "install commands had issues" in result.output

    def test_nothing_to_fix(self, runner: CliRunner, tmp_path: Path, config_file: Path) -> None:
        manifest = _project(tmp_path, {"next": "16.0.10"})

        result = runner.invoke(cli, ["-c", str(config_file), "fix", str(manifest.parent), "-y"])

        assert result.exit_code == 0
        assert "No vulnerable packages found!" in result.output
