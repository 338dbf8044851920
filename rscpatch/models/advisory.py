"""
Advisory data model for rscpatch.

An :class:`Advisory` is one known vulnerability with its own affected
package set, detection logic and remediation table. Advisories are
independent of each other: the registry never interprets their internals,
it only asks each one two questions:

1. :meth:`Advisory.is_vulnerable`: is this ``(package, version)`` affected?
2. :meth:`Advisory.get_patched_version`: what should it be bumped to?

Concrete advisories live in :mod:`rscpatch.advisories` and implement
:meth:`Advisory._check` and :meth:`Advisory._patch` against a parsed
:class:`~rscpatch.models.version.Version`. The base class takes care of
package filtering and unparseable input so that subclasses only encode
their tables.
"""

from __future__ import annotations

from enum import Enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple

from rscpatch.models.version import Version
from rscpatch.utils.version_utils import compare_versions, parse_version


class Severity(Enum):
    """Advisory severity, as published by the vendor."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Higher is more severe; ``unknown`` ranks lowest."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.UNKNOWN: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


@dataclass(frozen=True)
class VulnerabilityCheck:
    """Outcome of :meth:`Advisory.is_vulnerable`."""

    vulnerable: bool
    reason: str


@dataclass(frozen=True)
class PatchRecommendation:
    """Remediation proposed by one advisory.

    Attributes:
        recommended: Version to move to.
        alternative: A second valid remediation path, such as downgrading
            to a patched stable release instead of a newer canary.
        note: Free-text caveat shown to the user.
    """

    recommended: str
    alternative: Optional[str] = None
    note: Optional[str] = None


#: ``(major, minor)`` release line mapped to its first patched version.
PatchTable = Mapping[Tuple[int, int], str]


def line_patch(table: PatchTable, version: Version) -> Optional[str]:
    """Return the patched version of ``version``'s release line, if tabled."""
    return table.get(version.line)


def is_below(version: Version, threshold: str) -> bool:
    """Return ``True`` when ``version`` sorts strictly below ``threshold``."""
    return compare_versions(version, threshold) < 0


class Advisory(ABC):
    """A single known-vulnerability rule.

    Subclasses set the class attributes and implement :meth:`_check` and
    :meth:`_patch`. Both hooks only ever receive packages from
    :attr:`packages` and successfully parsed versions.
    """

    id: ClassVar[str]
    severity: ClassVar[Severity]
    description: ClassVar[str]
    url: ClassVar[str]
    packages: ClassVar[FrozenSet[str]]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def affects(self, package: str) -> bool:
        """Return ``True`` when ``package`` is in this advisory's scope."""
        return package in self.packages

    def is_vulnerable(self, package: str, version: str) -> VulnerabilityCheck:
        """Classify a concrete ``(package, version)`` pair."""
        if not self.affects(package):
            return VulnerabilityCheck(False, f"{package} is not covered by {self.id}")

        parsed = parse_version(version)
        if parsed is None:
            return VulnerabilityCheck(False, f"cannot compare version {version!r}")

        return self._check(package, parsed)

    def get_patched_version(
        self,
        package: str,
        version: str,
    ) -> Optional[PatchRecommendation]:
        """Return the remediation for ``version``'s release line, if known."""
        if not self.affects(package):
            return None

        parsed = parse_version(version)
        if parsed is None:
            return None

        return self._patch(package, parsed)

    # ------------------------------------------------------------------
    # Rule hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _check(self, package: str, version: Version) -> VulnerabilityCheck:
        """Apply this advisory's detection rules."""

    @abstractmethod
    def _patch(self, package: str, version: Version) -> Optional[PatchRecommendation]:
        """Look up this advisory's remediation."""

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    def to_json(self) -> Dict[str, object]:
        """Return a JSON-serializable summary of the advisory."""
        return {
            "id": self.id,
            "severity": self.severity.value,
            "description": self.description,
            "url": self.url,
            "packages": sorted(self.packages),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, severity={self.severity.value!r})"
