"""
Package manager integration.

Two concerns live here:

* **Installed-version lookup.** A manifest specifier such as ``^15.3.0``
  or ``catalog:`` does not say what is installed. The project's package
  manager is asked first, since it understands catalogs, overrides and
  hoisting; ``node_modules/<package>/package.json`` is the fallback.
* **Installs.** After ``package.json`` files are rewritten, the detected
  package manager is run once per project root to refresh the lock file
  (and optionally ``node_modules``).

Query failures are never fatal: a missing binary, a timeout or garbled
output is logged at debug level and the lookup moves on.
"""

from __future__ import annotations

import json
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from rscpatch.constants import (
    DEFAULT_PACKAGE_MANAGER,
    PACKAGE_MANAGER_LOCKFILES,
    PACKAGE_MANAGER_TIMEOUT,
    YARN_VERSION_TIMEOUT,
)
from rscpatch.exceptions import PackageManagerError
from rscpatch.utils.logger import get_logger

logger = get_logger("package_manager")

PathLike = Union[str, Path]

SUPPORTED_PACKAGE_MANAGERS = ("npm", "yarn", "pnpm", "bun")


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def detect_package_manager(start_dir: PathLike) -> str:
    """Identify the package manager from the nearest lock file.

    Walks from ``start_dir`` towards the filesystem root. In each directory
    Bun, pnpm, Yarn and npm lock files are checked in that order.

    Returns:
        ``"bun"``, ``"pnpm"``, ``"yarn"`` or ``"npm"``; npm when no lock
        file is found.
    """
    start = Path(start_dir).resolve()

    for directory in (start, *start.parents):
        for manager, lockfiles in PACKAGE_MANAGER_LOCKFILES:
            if any((directory / name).is_file() for name in lockfiles):
                return manager

    return DEFAULT_PACKAGE_MANAGER


# ---------------------------------------------------------------------------
# Installed-version lookup
# ---------------------------------------------------------------------------


def _run_query(args: Sequence[str], cwd: Path, timeout: int = PACKAGE_MANAGER_TIMEOUT) -> Optional[str]:
    """Run a read-only package manager command and return its stdout.

    ``None`` when the command is missing, times out or exits non-zero.
    """
    logger.debug("$ %s (in %s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            list(args),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("%s failed: %s", args[0], exc)
        return None

    if result.returncode != 0 or not result.stdout:
        logger.debug("%s exited with %s", args[0], result.returncode)
        return None

    return result.stdout


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _dependency_version(data: Any, package: str) -> Optional[str]:
    """Pick ``package``'s version out of an ``npm ls``-shaped document."""
    if not isinstance(data, dict):
        return None

    for key in ("dependencies", "devDependencies"):
        block = data.get(key)
        if isinstance(block, dict):
            entry = block.get(package)
            if isinstance(entry, dict) and isinstance(entry.get("version"), str):
                return entry["version"]

    return None


def _query_pnpm(directory: Path, package: str) -> Optional[str]:
    output = _run_query(["pnpm", "why", package, "--json"], directory)
    if output:
        data = _loads(output)
        if isinstance(data, list):
            for entry in data:
                if not isinstance(entry, dict):
                    continue
                deps = entry.get("dependencies")
                if isinstance(deps, dict):
                    dep = deps.get(package)
                    if isinstance(dep, dict) and isinstance(dep.get("version"), str):
                        return dep["version"]

    output = _run_query(["pnpm", "list", package, "--json", "--depth=0"], directory)
    if output:
        data = _loads(output)
        if isinstance(data, list):
            data = data[0] if data else None
        return _dependency_version(data, package)

    return None


def _query_npm(directory: Path, package: str) -> Optional[str]:
    output = _run_query(["npm", "ls", package, "--json", "--depth=0"], directory)
    return _dependency_version(_loads(output), package) if output else None


def _query_yarn(directory: Path, package: str) -> Optional[str]:
    output = _run_query(
        ["yarn", "list", "--pattern", package, "--json", "--depth=0"], directory
    )
    if not output:
        return None

    name_pattern = re.compile(rf"^{re.escape(package)}@(.+)$")

    # Yarn classic prints one JSON document per line
    for line in output.strip().splitlines():
        data = _loads(line)
        if not isinstance(data, dict) or data.get("type") != "tree":
            continue
        trees = (data.get("data") or {}).get("trees") or []
        for tree in trees:
            if not isinstance(tree, dict):
                continue
            match = name_pattern.match(str(tree.get("name", "")))
            if match:
                return match.group(1)

    return None


def _query_bun(directory: Path, package: str) -> Optional[str]:
    output = _run_query(["bun", "pm", "ls"], directory)
    if not output:
        return None

    # "├── next@15.3.4"; the name must not be the tail of a longer one
    match = re.search(rf"(?<![\w@/.-]){re.escape(package)}@(\d+\.\d+\.\d+[^\s]*)", output)
    return match.group(1) if match else None


_QUERIES = {
    "pnpm": _query_pnpm,
    "npm": _query_npm,
    "yarn": _query_yarn,
    "bun": _query_bun,
}


def get_installed_version_from_package_manager(
    directory: PathLike,
    package: str,
    package_manager: Optional[str] = None,
) -> Optional[str]:
    """Ask the package manager which version of ``package`` is installed."""
    path = Path(directory)
    manager = package_manager or detect_package_manager(path)
    query = _QUERIES.get(manager)
    return query(path, package) if query else None


def get_installed_version_from_node_modules(
    directory: PathLike,
    package: str,
) -> Optional[str]:
    """Read ``node_modules/<package>/package.json`` below ``directory``."""
    manifest = Path(directory) / "node_modules" / package / "package.json"

    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None

    version = data.get("version") if isinstance(data, dict) else None
    return version if isinstance(version, str) else None


def get_installed_version(
    directory: PathLike,
    package: str,
    use_package_manager: bool = True,
) -> Optional[str]:
    """Return the installed version of ``package`` for the project in ``directory``.

    Args:
        directory: Directory holding the ``package.json``.
        package: Package name.
        use_package_manager: Query the package manager before reading
            ``node_modules``. Disable to avoid spawning processes.

    Returns:
        The version string, or ``None`` when it cannot be determined.
    """
    if use_package_manager:
        version = get_installed_version_from_package_manager(directory, package)
        if version:
            return version

    return get_installed_version_from_node_modules(directory, package)


# ---------------------------------------------------------------------------
# Installs
# ---------------------------------------------------------------------------


def get_yarn_major_version(cwd: PathLike) -> int:
    """Return Yarn's major version, assuming classic (1) when unknown."""
    output = _run_query(["yarn", "--version"], Path(cwd), timeout=YARN_VERSION_TIMEOUT)
    if output:
        head = output.strip().split(".")[0]
        if head.isdigit():
            return int(head)
    return 1


def install_command(
    package_manager: str,
    cwd: PathLike,
    lockfile_only: bool = False,
) -> List[str]:
    """Build the install command line for ``package_manager``.

    Unknown package managers get npm's command.
    """
    manager = package_manager if package_manager in SUPPORTED_PACKAGE_MANAGERS else "npm"

    if not lockfile_only:
        return [manager, "install"]

    commands: Dict[str, List[str]] = {
        "npm": ["npm", "install", "--package-lock-only"],
        "pnpm": ["pnpm", "install", "--lockfile-only"],
        "bun": ["bun", "install", "--lockfile-only"],
    }
    if manager == "yarn":
        if get_yarn_major_version(cwd) >= 2:
            return ["yarn", "install", "--mode", "update-lockfile"]
        return ["yarn", "install"]

    return commands[manager]


def run_install(
    package_manager: str,
    cwd: PathLike,
    lockfile_only: bool = False,
) -> bool:
    """Run the package manager's install in ``cwd``.

    Output goes straight to the terminal.

    Returns:
        ``True`` when the command exited with status 0.

    Raises:
        PackageManagerError: The executable could not be started.
    """
    command = install_command(package_manager, cwd, lockfile_only)
    logger.info("$ %s (in %s)", " ".join(command), cwd)

    try:
        result = subprocess.run(command, cwd=str(cwd), check=False)
    except OSError as exc:
        raise PackageManagerError(
            f"Could not run {command[0]}: {exc}",
            package_manager=package_manager,
            command=command,
        ) from exc

    if result.returncode != 0:
        logger.warning("%s exited with status %d", " ".join(command), result.returncode)
        return False

    return True
