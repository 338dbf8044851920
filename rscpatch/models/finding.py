"""
Finding and Fix data models for rscpatch.

A :class:`Finding` records which advisories matched one package declared in
one manifest (or resolved in one lock file). A :class:`Fix` is the reduced
remediation for that package: a single target version that satisfies every
matched advisory at once.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rscpatch.models.advisory import Severity
from rscpatch.utils.version_utils import reconstruct_specifier


class Origin(Enum):
    """Manifest block a dependency was declared in."""

    RUNTIME = "runtime"
    DEVELOPMENT = "development"

    @property
    def manifest_key(self) -> str:
        """The ``package.json`` key holding this block."""
        return "dependencies" if self is Origin.RUNTIME else "devDependencies"


@dataclass(frozen=True)
class MatchedAdvisory:
    """One advisory that matched a package, with its remediation."""

    advisory_id: str
    severity: Severity
    recommended: Optional[str] = None
    alternative: Optional[str] = None
    note: Optional[str] = None

    def to_json(self) -> Dict[str, Optional[str]]:
        return {
            "id": self.advisory_id,
            "severity": self.severity.value,
            "recommended": self.recommended,
            "alternative": self.alternative,
            "note": self.note,
        }


@dataclass
class Finding:
    """
    Result of evaluating one package against the advisory registry.

    Attributes:
        package: Package name.
        declared_specifier: Specifier as written in the manifest, or the
            resolved version for lock file entries.
        observed_version: Version the advisories were evaluated against.
        display_version: Human-readable form, e.g. ``^15.3.0 (installed: 15.3.4)``.
        matched_advisories: Matches in registry order.
        origin_kind: Manifest block, or ``None`` for lock file entries.
    """

    package: str
    declared_specifier: str
    observed_version: str
    display_version: str
    matched_advisories: List[MatchedAdvisory] = field(default_factory=list)
    origin_kind: Optional[Origin] = None

    @property
    def is_vulnerable(self) -> bool:
        return bool(self.matched_advisories)

    def to_json(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "declared": self.declared_specifier,
            "observed": self.observed_version,
            "current": self.display_version,
            "origin": self.origin_kind.value if self.origin_kind else None,
            "advisories": [match.to_json() for match in self.matched_advisories],
        }


@dataclass(frozen=True)
class Fix:
    """
    Single-target remediation for one package.

    Attributes:
        package: Package name.
        original_specifier: Specifier to be rewritten.
        current: Display form of the current version.
        target_version: Highest recommendation among the matched advisories,
            or ``None`` when no matched advisory knows a patched version.
        cve_ids: Matched advisory ids, first-seen order.
        severity: Highest severity among the matches.
        note: First note in registry order.
        alternative: First alternative in registry order.
        origin_kind: Manifest block, or ``None`` for lock file fixes.
    """

    package: str
    original_specifier: str
    current: str
    target_version: Optional[str]
    cve_ids: List[str]
    severity: Severity = Severity.UNKNOWN
    note: Optional[str] = None
    alternative: Optional[str] = None
    origin_kind: Optional[Origin] = None

    @property
    def can_apply(self) -> bool:
        """Return ``True`` when a target version is known."""
        return self.target_version is not None

    @property
    def new_specifier(self) -> Optional[str]:
        """The rewritten specifier, preserving supported operators."""
        if self.target_version is None:
            return None
        return reconstruct_specifier(self.original_specifier, self.target_version)

    def to_json(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "current": self.current,
            "original_specifier": self.original_specifier,
            "patched": self.target_version,
            "new_specifier": self.new_specifier,
            "cves": list(self.cve_ids),
            "severity": self.severity.value,
            "note": self.note,
            "alternative": self.alternative,
            "origin": self.origin_kind.value if self.origin_kind else None,
        }

    def __str__(self) -> str:
        target = self.new_specifier or "?"
        return f"{self.package}: {self.current} -> {target} [{', '.join(self.cve_ids)}]"


@dataclass(frozen=True)
class LockfilePackageEntry:
    """A watched package resolved in a lock file."""

    name: str
    resolved_version: str
    resolved_source_url: Optional[str] = None


@dataclass
class ManifestAnalysis:
    """Findings for one ``package.json``."""

    path: str
    name: str
    findings: List[Finding] = field(default_factory=list)

    @property
    def is_vulnerable(self) -> bool:
        return bool(self.findings)


@dataclass
class LockfileScan:
    """Entries extracted from the lock file selected for a directory."""

    lockfile: str
    path: str
    entries: List[LockfilePackageEntry] = field(default_factory=list)


@dataclass
class LockfileAnalysis:
    """Fixes computed from one lock file."""

    lockfile: str
    path: str
    fixes: List[Fix] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "lockfile": self.lockfile,
            "path": self.path,
            "fixes": [fix.to_json() for fix in self.fixes],
        }
