"""
Advisory registry for rscpatch.

The registry is an ordered, immutable collection of
:class:`~rscpatch.models.advisory.Advisory` rules. Order matters: matches
are reported, and notes and alternatives are chosen, in registry order.

Typical usage::

    registry = build_default_registry()
    registry.all_packages()
    # ['next', 'react-server-dom-parcel', ...]
    [a.id for a in registry.advisories_for("next")]
    # ['CVE-2025-66478', 'CVE-2025-55184', 'CVE-2025-55183', 'CVE-2025-67779']

Tests can pass a reduced list to :class:`AdvisoryRegistry` to isolate a
single rule.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

from rscpatch.models.advisory import Advisory
from rscpatch.advisories.cve_2025_55182 import FlightDeserializationAdvisory
from rscpatch.advisories.cve_2025_55183 import SourceExposureAdvisory
from rscpatch.advisories.cve_2025_55184 import ServerFunctionDoSAdvisory
from rscpatch.advisories.cve_2025_66478 import React2ShellAdvisory
from rscpatch.advisories.cve_2025_67779 import DoSFollowUpAdvisory


class AdvisoryRegistry:
    """Read-only ordered collection of advisories.

    Args:
        advisories: Advisories in reporting order. Duplicate ids are
            rejected.

    Raises:
        ValueError: Two advisories share an id.
    """

    __slots__ = ("_advisories",)

    def __init__(self, advisories: Iterable[Advisory]) -> None:
        items: Tuple[Advisory, ...] = tuple(advisories)

        seen = set()
        for advisory in items:
            if advisory.id in seen:
                raise ValueError(f"Duplicate advisory id: {advisory.id}")
            seen.add(advisory.id)

        self._advisories = items

    @property
    def advisories(self) -> Tuple[Advisory, ...]:
        return self._advisories

    def all_packages(self) -> List[str]:
        """Return every affected package, in first-seen order."""
        packages: List[str] = []
        for advisory in self._advisories:
            for name in sorted(advisory.packages):
                if name not in packages:
                    packages.append(name)
        return packages

    def advisories_for(self, package: str) -> List[Advisory]:
        """Return the advisories covering ``package``, in registry order."""
        return [advisory for advisory in self._advisories if advisory.affects(package)]

    def get(self, advisory_id: str) -> Optional[Advisory]:
        """Return the advisory with ``advisory_id``, if registered."""
        for advisory in self._advisories:
            if advisory.id == advisory_id:
                return advisory
        return None

    def __iter__(self) -> Iterator[Advisory]:
        return iter(self._advisories)

    def __len__(self) -> int:
        return len(self._advisories)

    def __repr__(self) -> str:
        ids = ", ".join(advisory.id for advisory in self._advisories)
        return f"AdvisoryRegistry([{ids}])"


def build_default_registry() -> AdvisoryRegistry:
    """Build the registry of every advisory rscpatch knows about."""
    return AdvisoryRegistry(
        [
            React2ShellAdvisory(),  # RCE (critical)
            ServerFunctionDoSAdvisory(),  # DoS (high)
            SourceExposureAdvisory(),  # Source code exposure (medium)
            FlightDeserializationAdvisory(),  # React core RCE (critical)
            DoSFollowUpAdvisory(),  # DoS incomplete fix (high)
        ]
    )


__all__ = [
    "AdvisoryRegistry",
    "build_default_registry",
    "DoSFollowUpAdvisory",
    "FlightDeserializationAdvisory",
    "React2ShellAdvisory",
    "ServerFunctionDoSAdvisory",
    "SourceExposureAdvisory",
]
