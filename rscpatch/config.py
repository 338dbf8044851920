"""Configuration file loader for rscpatch.

Settings can live in either of two files:

- ``rscpatch.toml``, under a ``[rscpatch]`` table
- ``pyproject.toml``, under a ``[tool.rscpatch]`` table (handy for
  polyglot repositories that already carry one)

Discovery order:

1. Explicit path from ``--config`` or ``RSCPATCH_CONFIG``
2. ``rscpatch.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.rscpatch]`` table

Precedence: defaults < config file < CLI flags.

Example (``rscpatch.toml``)::

    [rscpatch]
    scan_lockfiles = true
    lockfile_only = false
    use_package_manager = false
    skip_dirs = ["fixtures", "e2e"]
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from rscpatch.exceptions import ConfigError
from rscpatch.utils.logger import get_logger
from rscpatch.constants import (
    DEFAULT_LOCKFILE_ONLY,
    DEFAULT_SCAN_LOCKFILES,
    DEFAULT_USE_PACKAGE_MANAGER,
)

logger = get_logger("config")

CONFIG_FILENAME = "rscpatch.toml"
PYPROJECT_FILENAME = "pyproject.toml"
SECTION_NAME = "rscpatch"

_BOOLEAN_OPTIONS = ("scan_lockfiles", "lockfile_only", "use_package_manager")


@dataclass
class RscPatchConfig:
    """Validated rscpatch settings.

    Every field has a default, so an empty table is a valid configuration.

    Attributes:
        scan_lockfiles: ``check`` also scans lock files for transitive
            React copies.
        lockfile_only: ``fix`` refreshes lock files without installing.
        use_package_manager: Installed-version lookups may run ``npm``,
            ``yarn``, ``pnpm`` or ``bun``. When ``False`` only
            ``node_modules`` is read.
        skip_dirs: Directory names to skip in addition to the built-in
            list (``node_modules``, ``.next``, ``dist``, ...).
        source_path: File the settings came from, or ``None`` for defaults.
    """

    scan_lockfiles: bool = DEFAULT_SCAN_LOCKFILES
    lockfile_only: bool = DEFAULT_LOCKFILE_ONLY
    use_package_manager: bool = DEFAULT_USE_PACKAGE_MANAGER
    skip_dirs: List[str] = field(default_factory=list)

    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "scan_lockfiles": self.scan_lockfiles,
            "lockfile_only": self.lockfile_only,
            "use_package_manager": self.use_package_manager,
            "skip_dirs": list(self.skip_dirs),
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Path given on the command line or through
            ``RSCPATCH_CONFIG``. It must exist.

    Returns:
        The file to load, or ``None`` when there is none.

    Raises:
        ConfigError: ``explicit_path`` does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    candidate = cwd / CONFIG_FILENAME
    if candidate.is_file():
        logger.debug("Found %s: %s", CONFIG_FILENAME, candidate)
        return candidate

    pyproject = cwd / PYPROJECT_FILENAME
    if pyproject.is_file() and _pyproject_has_section(pyproject):
        logger.debug("Found [tool.%s] in %s", SECTION_NAME, pyproject)
        return pyproject

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    # A broken pyproject.toml that is not ours should not stop a scan
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    tool = raw.get("tool")
    return isinstance(tool, dict) and SECTION_NAME in tool


def load_config(config_path: Optional[Path] = None) -> RscPatchConfig:
    """Load and validate the rscpatch configuration.

    Args:
        config_path: Explicit file; ``None`` runs discovery.

    Returns:
        The configuration, all defaults when no file is found.

    Raises:
        ConfigError: The file cannot be read or parsed, or holds unknown
            keys or values of the wrong type.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        return RscPatchConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == PYPROJECT_FILENAME:
        section = raw.get("tool", {}).get(SECTION_NAME, {})
    else:
        section = raw.get(SECTION_NAME, {})

    if not isinstance(section, dict):
        raise ConfigError(
            f"[{SECTION_NAME}] must be a table",
            config_path=str(resolved),
        )

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Parse a TOML file, wrapping every failure in :class:`ConfigError`."""
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> RscPatchConfig:
    """Validate a ``[rscpatch]`` table.

    Raises:
        ConfigError: Unknown keys, or a value of the wrong type.
    """
    config = RscPatchConfig()

    known = set(_BOOLEAN_OPTIONS) | {"skip_dirs"}
    unknown = set(section) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    for option in _BOOLEAN_OPTIONS:
        if option not in section:
            continue
        value = section[option]
        if not isinstance(value, bool):
            raise ConfigError(
                f"{option} must be a boolean, got {type(value).__name__}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, value)

    if "skip_dirs" in section:
        value = section["skip_dirs"]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigError(
                "skip_dirs must be a list of strings",
                config_path=config_path,
                option="skip_dirs",
            )
        config.skip_dirs = list(value)

    return config
