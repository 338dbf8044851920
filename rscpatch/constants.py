"""
Centralized constants for rscpatch.

This module defines immutable configuration values used across rscpatch,
including the package watch-list, lockfile names, directory skip rules,
subprocess limits, and logging formats. All values are intended to be
treated as read-only.
"""

from typing import Final, Mapping, Sequence

# ---------------------------------------------------------------------------
# Watched packages
# ---------------------------------------------------------------------------

#: Bundler bindings that ship the React Flight server runtime.
RSC_PACKAGES: Final[Sequence[str]] = (
    "react-server-dom-webpack",
    "react-server-dom-parcel",
    "react-server-dom-turbopack",
)

#: React packages extracted from lock files.
LOCKFILE_WATCHLIST: Final[Sequence[str]] = (
    "react",
    "react-dom",
    *RSC_PACKAGES,
)

#: Advisory id used when a dependency's version cannot be determined at all.
UNKNOWN_ADVISORY_ID: Final[str] = "UNKNOWN"

#: Version pinned for a package whose version could not be determined.
SAFE_FALLBACK_VERSIONS: Final[Mapping[str, str]] = {
    "next": "15.5.9",
    "react-server-dom-webpack": "19.2.3",
    "react-server-dom-parcel": "19.2.3",
    "react-server-dom-turbopack": "19.2.3",
}

#: Specifier values that never name a concrete version.
UNPARSEABLE_SPECIFIERS: Final[Sequence[str]] = ("latest", "next", "canary", "*", "x")

#: Protocol prefixes whose target version is resolved elsewhere.
UNPARSEABLE_PREFIXES: Final[Sequence[str]] = ("npm:", "catalog:", "workspace:")

# ---------------------------------------------------------------------------
# Manifests and lock files
# ---------------------------------------------------------------------------

#: Manifest file name.
MANIFEST_FILENAME: Final[str] = "package.json"

#: Lock files in scan priority order.
LOCKFILE_CANDIDATES: Final[Sequence[str]] = (
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "bun.lock",
)

#: Directory names never descended into while scanning.
SKIP_DIRS: Final[Sequence[str]] = (
    "node_modules",
    ".next",
    ".turbo",
    ".git",
    "dist",
    "build",
    ".output",
    ".nuxt",
    ".vercel",
    "coverage",
)

# ---------------------------------------------------------------------------
# Package managers
# ---------------------------------------------------------------------------

#: Lock files that identify each package manager, in detection order.
PACKAGE_MANAGER_LOCKFILES: Final[Sequence[tuple]] = (
    ("bun", ("bun.lockb", "bun.lock")),
    ("pnpm", ("pnpm-lock.yaml",)),
    ("yarn", ("yarn.lock",)),
    ("npm", ("package-lock.json",)),
)

#: Default package manager when no lock file is found.
DEFAULT_PACKAGE_MANAGER: Final[str] = "npm"

#: Timeout in seconds for package manager queries.
PACKAGE_MANAGER_TIMEOUT: Final[int] = 10

#: Timeout in seconds for ``yarn --version``.
YARN_VERSION_TIMEOUT: Final[int] = 5

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Scan lock files in addition to manifests.
DEFAULT_SCAN_LOCKFILES: Final[bool] = True

#: Only refresh lock files after applying fixes.
DEFAULT_LOCKFILE_ONLY: Final[bool] = False

#: Allow installed-version lookups to query the package manager.
DEFAULT_USE_PACKAGE_MANAGER: Final[bool] = True

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests and lock files.
MAX_FILE_SIZE: Final[int] = 50 * 1024 * 1024  # 50 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
