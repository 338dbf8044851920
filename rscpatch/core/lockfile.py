"""
Lock file parsing.

Manifests only state ranges; lock files record what was actually
resolved, including transitive copies of React that no ``package.json``
mentions. The parsers here extract the watched React packages from each
lock file format:

==================  ===========================================
Format              Strategy
==================  ===========================================
package-lock.json   JSON; ``packages`` map (v2/v3) and the nested
                    ``dependencies`` tree (v1)
yarn.lock           line scanner with a two-state cursor
pnpm-lock.yaml      per-package regex over every line
bun.lockb/bun.lock  not parsed; always empty
==================  ===========================================

Parsers never raise on malformed input. They return whatever they could
extract, usually ``[]``, and callers fall back to installed-version
lookups.
"""

from __future__ import annotations

import re
import json
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from rscpatch.constants import LOCKFILE_CANDIDATES, LOCKFILE_WATCHLIST
from rscpatch.exceptions import FileOperationError
from rscpatch.models.finding import LockfileAnalysis, LockfilePackageEntry, LockfileScan
from rscpatch.core.planner import analyze_lockfile_entries
from rscpatch.utils.filesystem import iter_project_dirs, safe_read_file
from rscpatch.utils.logger import get_logger

logger = get_logger("lockfile")

PathLike = Union[str, Path]


class LockfileFormat(Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"

    @classmethod
    def from_filename(cls, filename: str) -> Optional["LockfileFormat"]:
        return _FORMATS_BY_FILENAME.get(filename)


_FORMATS_BY_FILENAME: Dict[str, LockfileFormat] = {
    "package-lock.json": LockfileFormat.NPM,
    "yarn.lock": LockfileFormat.YARN,
    "pnpm-lock.yaml": LockfileFormat.PNPM,
    "bun.lockb": LockfileFormat.BUN,
    "bun.lock": LockfileFormat.BUN,
}

_WATCHED = frozenset(LOCKFILE_WATCHLIST)


# ---------------------------------------------------------------------------
# npm
# ---------------------------------------------------------------------------


def _npm_entry(name: str, info: Any) -> Optional[LockfilePackageEntry]:
    if name not in _WATCHED or not isinstance(info, Mapping):
        return None

    version = info.get("version")
    if not isinstance(version, str) or not version:
        return None

    resolved = info.get("resolved")
    return LockfilePackageEntry(
        name=name,
        resolved_version=version,
        resolved_source_url=resolved if isinstance(resolved, str) else None,
    )


def _walk_npm_dependencies(
    dependencies: Mapping[str, Any],
    entries: List[LockfilePackageEntry],
) -> None:
    for name, info in dependencies.items():
        entry = _npm_entry(name, info)
        if entry is not None:
            entries.append(entry)

        if isinstance(info, Mapping):
            nested = info.get("dependencies")
            if isinstance(nested, Mapping):
                _walk_npm_dependencies(nested, entries)


def parse_npm_lockfile(content: str) -> List[LockfilePackageEntry]:
    """Extract watched packages from a ``package-lock.json``.

    Both layouts are read when present: the flat ``packages`` map keyed by
    install path (lockfile v2/v3) and the recursive ``dependencies`` tree
    (v1, also kept in v2 for compatibility).
    """
    try:
        document = json.loads(content)
    except ValueError:
        logger.debug("package-lock.json is not valid JSON")
        return []

    if not isinstance(document, Mapping):
        return []

    entries: List[LockfilePackageEntry] = []

    packages = document.get("packages")
    if isinstance(packages, Mapping):
        for install_path, info in packages.items():
            # "node_modules/a/node_modules/react" installs react
            _, _, name = str(install_path).rpartition("node_modules/")
            entry = _npm_entry(name, info)
            if entry is not None:
                entries.append(entry)

    dependencies = document.get("dependencies")
    if isinstance(dependencies, Mapping):
        _walk_npm_dependencies(dependencies, entries)

    return entries


# ---------------------------------------------------------------------------
# yarn
# ---------------------------------------------------------------------------

_YARN_DECLARATION_RE = re.compile(r'^"?(@?[^@\s"]+)@.*:\s*$')
_YARN_VERSION_RE = re.compile(r'^\s+version\s+"([^"]+)"')


class _YarnState(Enum):
    IDLE = "idle"
    AWAITING_VERSION = "awaiting_version"


def parse_yarn_lockfile(content: str) -> List[LockfilePackageEntry]:
    """Extract watched packages from a Yarn classic ``yarn.lock``.

    The scanner is idle until a declaration line names a watched package
    (``react@^19.0.0:`` or ``"react@^19.0.0", "react@19.0.0":``). It then
    awaits that block's ``version "X"`` line, emits one entry and returns
    to idle. Any other declaration line, scoped ones included, resets it.
    The range may contain colons itself (tarball URLs, ``npm:`` aliases).
    A declaration listing several keys is named after its first key.
    """
    entries: List[LockfilePackageEntry] = []
    state = _YarnState.IDLE
    package: Optional[str] = None

    for line in content.splitlines():
        declaration = _YARN_DECLARATION_RE.match(line)
        if declaration:
            name = declaration.group(1)
            if name in _WATCHED:
                state, package = _YarnState.AWAITING_VERSION, name
            else:
                state, package = _YarnState.IDLE, None
            continue

        if state is _YarnState.AWAITING_VERSION and package is not None:
            version = _YARN_VERSION_RE.match(line)
            if version:
                entries.append(LockfilePackageEntry(package, version.group(1)))
                state, package = _YarnState.IDLE, None

    return entries


# ---------------------------------------------------------------------------
# pnpm
# ---------------------------------------------------------------------------


def _pnpm_pattern(name: str, bare: bool = False) -> "re.Pattern[str]":
    # "/react@19.0.0:", "'/react@19.0.0':", "react-dom@19.0.0(react@19.0.0):"
    prefix = r"\s+" if bare else r"""\s*(?:['"]/?|/)"""
    return re.compile(rf"""^{prefix}{re.escape(name)}@([^:(/\s'"]+)""")


_PNPM_PATTERNS = tuple((name, _pnpm_pattern(name)) for name in LOCKFILE_WATCHLIST)
_PNPM_BARE_PATTERNS = tuple((name, _pnpm_pattern(name, bare=True)) for name in LOCKFILE_WATCHLIST)

# lockfile v9 writes unquoted, unprefixed keys under these sections
_PNPM_KEY_SECTIONS = frozenset({"packages", "snapshots"})
_PNPM_SECTION_RE = re.compile(r"^([A-Za-z]\w*):")


def parse_pnpm_lockfile(content: str) -> List[LockfilePackageEntry]:
    """Extract watched packages from a ``pnpm-lock.yaml``.

    The YAML is not parsed; each line is matched against one pattern per
    watched package. Keys prefixed with ``/`` or a quote are recognized
    anywhere. Bare indented keys (``  react@19.0.0:``, lockfile v9) are
    only recognized inside the ``packages`` and ``snapshots`` sections.
    """
    entries: List[LockfilePackageEntry] = []
    in_key_section = False

    for line in content.splitlines():
        section = _PNPM_SECTION_RE.match(line)
        if section:
            in_key_section = section.group(1) in _PNPM_KEY_SECTIONS
            continue

        patterns = _PNPM_PATTERNS + _PNPM_BARE_PATTERNS if in_key_section else _PNPM_PATTERNS
        for name, pattern in patterns:
            match = pattern.match(line)
            if match:
                entries.append(LockfilePackageEntry(name, match.group(1)))
                break

    return entries


# ---------------------------------------------------------------------------
# bun
# ---------------------------------------------------------------------------


def parse_bun_lockfile(content: str) -> List[LockfilePackageEntry]:
    """Bun lock files are not read; installed-version lookups cover them."""
    return []


# ---------------------------------------------------------------------------
# Dispatch and scanning
# ---------------------------------------------------------------------------

_PARSERS: Dict[LockfileFormat, Callable[[str], List[LockfilePackageEntry]]] = {
    LockfileFormat.NPM: parse_npm_lockfile,
    LockfileFormat.YARN: parse_yarn_lockfile,
    LockfileFormat.PNPM: parse_pnpm_lockfile,
    LockfileFormat.BUN: parse_bun_lockfile,
}


def parse_lockfile(fmt: LockfileFormat, content: str) -> List[LockfilePackageEntry]:
    """Parse ``content`` with the parser for ``fmt``."""
    return _PARSERS[fmt](content)


def scan_lockfile(directory: PathLike) -> Optional[LockfileScan]:
    """Parse the first lock file in ``directory`` that yields any entries.

    Candidates are tried in :data:`~rscpatch.constants.LOCKFILE_CANDIDATES`
    order and results are never merged: a ``package-lock.json`` with
    entries hides a stale ``yarn.lock`` next to it.

    Returns:
        The scan, or ``None`` when no candidate produced entries.
    """
    base = Path(directory)

    for filename in LOCKFILE_CANDIDATES:
        path = base / filename
        if not path.is_file():
            continue

        fmt = LockfileFormat.from_filename(filename)
        if fmt is LockfileFormat.BUN:
            logger.debug("%s is not parsed", path)
            continue

        try:
            content = safe_read_file(path)
        except FileOperationError as exc:
            logger.warning("Skipping unreadable lock file %s: %s", path, exc)
            continue

        entries = parse_lockfile(fmt, content)
        if entries:
            logger.debug("%s: %d watched package(s)", path, len(entries))
            return LockfileScan(lockfile=filename, path=str(path), entries=entries)

    return None


def analyze_lockfile(scan: Optional[LockfileScan], resolver) -> Optional[LockfileAnalysis]:
    """Evaluate a lock file scan; ``None`` when nothing in it is affected."""
    if scan is None or not scan.entries:
        return None

    fixes = analyze_lockfile_entries(scan.entries, resolver)
    if not fixes:
        return None

    return LockfileAnalysis(lockfile=scan.lockfile, path=scan.path, fixes=fixes)


def find_and_scan_lockfiles(
    root: PathLike,
    resolver,
    skip_dirs: Iterable[str] = (),
) -> List[LockfileAnalysis]:
    """Scan the lock file of every project directory under ``root``."""
    results: List[LockfileAnalysis] = []

    for directory in iter_project_dirs(root, skip_dirs):
        analysis = analyze_lockfile(scan_lockfile(directory), resolver)
        if analysis is not None:
            results.append(analysis)

    return results
