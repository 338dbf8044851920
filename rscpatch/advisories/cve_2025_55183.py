"""CVE-2025-55183: Server Function source code exposure.

A crafted request can make the server return the compiled source of a
Server Function, leaking any secrets hard-coded in it. Only the 15.x and
16.x ``next`` lines are affected; 14.x and earlier, including the 14.3
canaries, are not. Untabled 15.x/16.x minors are assumed safe.
"""

from __future__ import annotations

from typing import Optional

from rscpatch.constants import RSC_PACKAGES
from rscpatch.models.version import Version
from rscpatch.models.advisory import (
    Advisory,
    PatchRecommendation,
    Severity,
    VulnerabilityCheck,
    is_below,
    line_patch,
)

NEXT_PATCHED_LINES = {
    (15, 0): "15.0.6",
    (15, 1): "15.1.10",
    (15, 2): "15.2.7",
    (15, 3): "15.3.7",
    (15, 4): "15.4.9",
    (15, 5): "15.5.8",
    (16, 0): "16.0.9",
}

NEXT_CANARY_CUTOFFS = {
    15: "15.6.0-canary.59",
    16: "16.1.0-canary.18",
}

RSC_PATCHED_LINES = {
    (19, 0): "19.0.2",
    (19, 1): "19.1.3",
    (19, 2): "19.2.2",
}


class SourceExposureAdvisory(Advisory):
    id = "CVE-2025-55183"
    severity = Severity.MEDIUM
    description = "Source code exposure of React Server Functions"
    url = "https://nextjs.org/blog/security-update-2025-12-11"
    packages = frozenset(("next", *RSC_PACKAGES))

    def _check(self, package: str, version: Version) -> VulnerabilityCheck:
        if package == "next":
            if version.major < 15:
                return VulnerabilityCheck(False, f"{version.major}.x is not affected")
            if version.is_canary:
                cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
                if cutoff is None:
                    return VulnerabilityCheck(False, f"no {version.major}.x canaries are affected")
                if is_below(version, cutoff):
                    return VulnerabilityCheck(True, f"canary is below {cutoff}")
                return VulnerabilityCheck(False, f"canary includes the fix from {cutoff}")
            table = NEXT_PATCHED_LINES
        else:
            table = RSC_PATCHED_LINES

        patched = line_patch(table, version)
        if patched is None:
            return VulnerabilityCheck(False, f"{version.major}.{version.minor} is not an affected line")
        if is_below(version, patched):
            return VulnerabilityCheck(True, f"{version} is below {patched}")
        return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

    def _patch(self, package: str, version: Version) -> Optional[PatchRecommendation]:
        if package == "next" and version.is_canary:
            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            return PatchRecommendation(cutoff) if cutoff else None

        table = NEXT_PATCHED_LINES if package == "next" else RSC_PATCHED_LINES
        patched = line_patch(table, version)
        return PatchRecommendation(patched) if patched else None
