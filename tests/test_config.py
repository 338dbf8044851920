from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from rscpatch.config import (
    RscPatchConfig,
    discover_config_file,
    load_config,
    _parse_section,
    _pyproject_has_section,
    _read_toml,
)
from rscpatch.exceptions import ConfigError


@pytest.mark.unit
class TestRscPatchConfig:
    """Tests for RscPatchConfig dataclass."""

    def test_default_initialization(self) -> None:
        """Test RscPatchConfig initializes with correct defaults."""
        config = RscPatchConfig()

        assert config.scan_lockfiles is True
        assert config.lockfile_only is False
        assert config.use_package_manager is True
        assert config.skip_dirs == []
        assert config.source_path is None

    def test_skip_dirs_not_shared(self) -> None:
        """Test each instance gets its own skip_dirs list."""
        first = RscPatchConfig()
        first.skip_dirs.append("fixtures")

        assert RscPatchConfig().skip_dirs == []

    def test_to_log_dict(self) -> None:
        """Test to_log_dict returns configuration without metadata."""
        config = RscPatchConfig(
            scan_lockfiles=False,
            skip_dirs=["e2e"],
            source_path=Path("/test/rscpatch.toml"),
        )

        result = config.to_log_dict()

        assert result == {
            "scan_lockfiles": False,
            "lockfile_only": False,
            "use_package_manager": True,
            "skip_dirs": ["e2e"],
        }
        assert "source_path" not in result


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file function."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        """Test explicit path is used when provided and exists."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[rscpatch]\n", encoding="utf-8")
        (tmp_path / "rscpatch.toml").write_text("[rscpatch]\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file(config_file)

        assert result == config_file.resolve()

    def test_explicit_path_not_found_raises_error(self, tmp_path: Path) -> None:
        """Test ConfigError raised when explicit path doesn't exist."""
        with pytest.raises(ConfigError) as exc_info:
            discover_config_file(tmp_path / "nonexistent.toml")

        assert "not found" in str(exc_info.value).lower()

    def test_discovers_rscpatch_toml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "rscpatch.toml"
        config_file.write_text("[rscpatch]\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result == config_file

    def test_discovers_pyproject_toml_with_section(self, tmp_path: Path) -> None:
        """Test discovers pyproject.toml with [tool.rscpatch] section."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.rscpatch]\nscan_lockfiles = false\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result == config_file

    def test_ignores_pyproject_toml_without_section(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.other]\nkey = 'value'\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result is None

    def test_precedence_order(self, tmp_path: Path) -> None:
        """Test rscpatch.toml is preferred over pyproject.toml."""
        rscpatch_toml = tmp_path / "rscpatch.toml"
        rscpatch_toml.write_text("[rscpatch]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.rscpatch]\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result == rscpatch_toml


@pytest.mark.unit
class TestPyprojectHasSection:
    """Tests for _pyproject_has_section helper."""

    def test_section_exists(self, tmp_path: Path) -> None:
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.rscpatch]\nlockfile_only = true\n", encoding="utf-8")

        assert _pyproject_has_section(config_file) is True

    def test_section_missing(self, tmp_path: Path) -> None:
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[project]\nname = 'x'\n", encoding="utf-8")

        assert _pyproject_has_section(config_file) is False

    def test_returns_false_on_errors(self, tmp_path: Path) -> None:
        """Test a broken or missing pyproject.toml is not an error."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("invalid ][[", encoding="utf-8")

        assert _pyproject_has_section(config_file) is False
        assert _pyproject_has_section(tmp_path / "missing.toml") is False


@pytest.mark.unit
class TestReadToml:
    """Tests for _read_toml helper."""

    def test_reads_valid_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "test.toml"
        toml_file.write_text("[rscpatch]\nskip_dirs = ['e2e']\n", encoding="utf-8")

        assert _read_toml(toml_file) == {"rscpatch": {"skip_dirs": ["e2e"]}}

    def test_raises_error_on_invalid_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "invalid.toml"
        toml_file.write_text("invalid ][[ toml", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            _read_toml(toml_file)

        assert "Invalid TOML" in str(exc_info.value)

    def test_raises_error_when_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            _read_toml(tmp_path / "nonexistent.toml")

        assert "Cannot read" in str(exc_info.value)


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section configuration validator."""

    def test_parses_empty_section(self) -> None:
        """Test parsing empty section returns defaults."""
        assert _parse_section({}, config_path="test.toml") == RscPatchConfig()

    def test_parses_all_options(self) -> None:
        section = {
            "scan_lockfiles": False,
            "lockfile_only": True,
            "use_package_manager": False,
            "skip_dirs": ["fixtures", "e2e"],
        }

        result = _parse_section(section, config_path="test.toml")

        assert result.scan_lockfiles is False
        assert result.lockfile_only is True
        assert result.use_package_manager is False
        assert result.skip_dirs == ["fixtures", "e2e"]

    def test_raises_error_on_unknown_keys(self) -> None:
        """Test raises ConfigError when unknown keys are present."""
        with pytest.raises(ConfigError) as exc_info:
            _parse_section({"unknown_key": "value", "check": True}, config_path="test.toml")

        assert "Unknown configuration keys: check, unknown_key" in str(exc_info.value)

    @pytest.mark.parametrize("option", ["scan_lockfiles", "lockfile_only", "use_package_manager"])
    def test_raises_error_on_non_boolean(self, option: str) -> None:
        """Test raises ConfigError when a flag is not a boolean."""
        with pytest.raises(ConfigError) as exc_info:
            _parse_section({option: "true"}, config_path="test.toml")

        assert f"{option} must be a boolean, got str" in str(exc_info.value)
        assert exc_info.value.option == option

    @pytest.mark.parametrize("value", ["fixtures", ["fixtures", 1], {"a": "b"}])
    def test_raises_error_on_bad_skip_dirs(self, value) -> None:
        with pytest.raises(ConfigError, match="skip_dirs must be a list of strings"):
            _parse_section({"skip_dirs": value}, config_path="test.toml")


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config main function."""

    def test_returns_defaults_when_no_config_found(self, tmp_path: Path) -> None:
        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = load_config()

        assert result == RscPatchConfig()
        assert result.source_path is None

    def test_loads_rscpatch_toml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "rscpatch.toml"
        config_file.write_text("[rscpatch]\nscan_lockfiles = false\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = load_config()

        assert result.scan_lockfiles is False
        assert result.source_path == config_file

    def test_loads_pyproject_toml(self, tmp_path: Path) -> None:
        """Test loads the [tool.rscpatch] table from pyproject.toml."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.rscpatch]\nuse_package_manager = false\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            result = load_config()

        assert result.use_package_manager is False
        assert result.source_path == config_file

    def test_loads_explicit_config_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[rscpatch]\nlockfile_only = true\n", encoding="utf-8")

        result = load_config(config_file)

        assert result.lockfile_only is True
        assert result.source_path == config_file.resolve()

    def test_missing_section_gives_defaults(self, tmp_path: Path) -> None:
        """Test a file without the [rscpatch] table loads as defaults."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[other]\nkey = 1\n", encoding="utf-8")

        result = load_config(config_file)

        assert result.to_log_dict() == RscPatchConfig().to_log_dict()

    def test_section_must_be_table(self, tmp_path: Path) -> None:
        config_file = tmp_path / "rscpatch.toml"
        config_file.write_text("rscpatch = 1\n", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            with pytest.raises(ConfigError, match="must be a table"):
                load_config()

    def test_raises_error_on_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "rscpatch.toml").write_text("invalid ][[ toml", encoding="utf-8")

        with patch("rscpatch.config.Path.cwd", return_value=tmp_path):
            with pytest.raises(ConfigError):
                load_config()
