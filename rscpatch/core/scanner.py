"""
Project-wide scan shared by the ``check`` and ``fix`` commands.

:func:`scan_project` walks a directory tree, analyzes every manifest,
plans fixes per manifest and, when asked, evaluates lock files. The
returned :class:`ScanReport` is what the commands render.
"""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from rscpatch.core.lockfile import find_and_scan_lockfiles
from rscpatch.core.manifest import analyze_project
from rscpatch.core.planner import plan_fixes
from rscpatch.core.resolver import Resolver
from rscpatch.models.finding import Fix, LockfileAnalysis, ManifestAnalysis
from rscpatch.utils.logger import get_logger

logger = get_logger("scanner")

PathLike = Union[str, Path]


@dataclass
class ManifestReport:
    """A vulnerable manifest and the fixes planned for it."""

    analysis: ManifestAnalysis
    fixes: List[Fix] = field(default_factory=list)

    @property
    def path(self) -> str:
        return self.analysis.path

    @property
    def applicable_fixes(self) -> List[Fix]:
        return [fix for fix in self.fixes if fix.can_apply]

    def to_json(self) -> Dict[str, Any]:
        return {
            "path": self.analysis.path,
            "name": self.analysis.name,
            "fixes": [fix.to_json() for fix in self.fixes],
        }


@dataclass
class ScanReport:
    """Outcome of scanning one directory tree.

    Attributes:
        root: Directory that was scanned.
        manifests_scanned: Number of readable ``package.json`` files.
        manifests: Reports for the vulnerable manifests only.
        lockfiles: Lock files containing affected packages.
    """

    root: str
    manifests_scanned: int = 0
    manifests: List[ManifestReport] = field(default_factory=list)
    lockfiles: List[LockfileAnalysis] = field(default_factory=list)

    @property
    def is_vulnerable(self) -> bool:
        return bool(self.manifests or self.lockfiles)

    @property
    def fix_count(self) -> int:
        return sum(len(report.fixes) for report in self.manifests)

    def to_json(self) -> Dict[str, Any]:
        return {
            "vulnerable": self.is_vulnerable,
            "count": len(self.manifests),
            "files": [report.to_json() for report in self.manifests],
            "lockfiles": [analysis.to_json() for analysis in self.lockfiles],
        }


def scan_project(
    root: PathLike,
    *,
    resolver: Optional[Resolver] = None,
    scan_lockfiles: bool = True,
    use_package_manager: bool = True,
    skip_dirs: Iterable[str] = (),
) -> ScanReport:
    """Scan every manifest (and optionally lock file) under ``root``.

    Args:
        root: Directory to scan.
        resolver: Resolver to use; a default-registry one when omitted.
        scan_lockfiles: Also evaluate lock files for transitive copies.
        use_package_manager: Allow installed-version lookups to run the
            package manager.
        skip_dirs: Extra directory names to skip.

    Returns:
        The :class:`ScanReport`.
    """
    resolver = resolver or Resolver()
    skip = list(skip_dirs)

    analyses = analyze_project(
        root,
        resolver,
        use_package_manager=use_package_manager,
        skip_dirs=skip,
    )

    report = ScanReport(root=str(root), manifests_scanned=len(analyses))

    for analysis in analyses:
        if not analysis.is_vulnerable:
            continue
        report.manifests.append(ManifestReport(analysis, plan_fixes(analysis.findings)))

    if scan_lockfiles:
        report.lockfiles = find_and_scan_lockfiles(root, resolver, skip)

    logger.info(
        "%d vulnerable manifest(s), %d vulnerable lock file(s)",
        len(report.manifests),
        len(report.lockfiles),
    )
    return report
