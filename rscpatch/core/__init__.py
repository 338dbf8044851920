"""
Core scanning engine for rscpatch.

- :mod:`~rscpatch.core.resolver` evaluates declared dependencies
- :mod:`~rscpatch.core.planner` reduces findings to minimal fixes
- :mod:`~rscpatch.core.lockfile` extracts resolved versions from lock files
- :mod:`~rscpatch.core.manifest` reads and rewrites ``package.json``
- :mod:`~rscpatch.core.scanner` ties them together for a directory tree
"""

from __future__ import annotations

from rscpatch.core.resolver import Resolver, needs_installed_version
from rscpatch.core.planner import analyze_lockfile_entries, plan, plan_fixes
from rscpatch.core.lockfile import (
    LockfileFormat,
    analyze_lockfile,
    find_and_scan_lockfiles,
    parse_lockfile,
    scan_lockfile,
)
from rscpatch.core.manifest import (
    analyze_package_json,
    analyze_project,
    apply_fixes,
    read_manifest,
)
from rscpatch.core.scanner import ManifestReport, ScanReport, scan_project

__all__ = [
    "Resolver",
    "needs_installed_version",
    "plan",
    "plan_fixes",
    "analyze_lockfile_entries",
    "LockfileFormat",
    "parse_lockfile",
    "scan_lockfile",
    "analyze_lockfile",
    "find_and_scan_lockfiles",
    "read_manifest",
    "analyze_package_json",
    "analyze_project",
    "apply_fixes",
    "ManifestReport",
    "ScanReport",
    "scan_project",
]
