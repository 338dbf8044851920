"""CVE-2025-55184: denial of service through crafted Server Function requests.

A malicious Flight payload sends the server into an infinite loop. Unlike
React2Shell this reaches back to the first releases with Server Actions,
so the 13.x and 14.x stable lines are affected as well.

Boundary policy:

- ``next`` before 13.3.0 is not affected.
- 13.3.0 up to (excluding) 14.2.34 is affected, and the fix for all of it
  is 14.2.34. Every 14.3 canary is affected; those canaries sort above
  14.2.34 but never received the fix.
- 15.x and 16.x use per-minor tables; untabled minors are assumed safe.
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

NEXT_LEGACY_FLOOR = "13.3.0"
NEXT_LEGACY_PATCH = "14.2.34"

NEXT_CANARY_CUTOFFS = {
    15: "15.6.0-canary.59",
    16: "16.1.0-canary.18",
}

RSC_PATCHED_LINES = {
    (19, 0): "19.0.2",
    (19, 1): "19.1.3",
    (19, 2): "19.2.2",
}


def _is_14_3_canary(version: Version) -> bool:
    return version.is_canary and version.major == 14 and version.minor >= 3


class ServerFunctionDoSAdvisory(Advisory):
    id = "CVE-2025-55184"
    severity = Severity.HIGH
    description = "Denial of service via crafted React Server Function requests"
    url = "https://nextjs.org/blog/security-update-2025-12-11"
    packages = frozenset(("next", *RSC_PACKAGES))

    def _check(self, package: str, version: Version) -> VulnerabilityCheck:
        if package != "next":
            patched = line_patch(RSC_PATCHED_LINES, version)
            if patched is None:
                return VulnerabilityCheck(False, f"{version} is outside the affected 19.x lines")
            if is_below(version, patched):
                return VulnerabilityCheck(True, f"{version} is below {patched}")
            return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

        if version.major in (13, 14):
            if _is_14_3_canary(version):
                return VulnerabilityCheck(True, "14.3 canaries never received the fix")
            if is_below(version, NEXT_LEGACY_FLOOR):
                return VulnerabilityCheck(False, "release predates Server Actions")
            if is_below(version, NEXT_LEGACY_PATCH):
                return VulnerabilityCheck(True, f"{version} is below {NEXT_LEGACY_PATCH}")
            return VulnerabilityCheck(False, f"{version} includes the fix from {NEXT_LEGACY_PATCH}")

        if version.major < 13:
            return VulnerabilityCheck(False, "release predates Server Actions")

        if version.is_canary:
            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            if cutoff is None:
                return VulnerabilityCheck(False, f"no {version.major}.x canaries are affected")
            if is_below(version, cutoff):
                return VulnerabilityCheck(True, f"canary is below {cutoff}")
            return VulnerabilityCheck(False, f"canary includes the fix from {cutoff}")

        patched = line_patch(NEXT_PATCHED_LINES, version)
        if patched is None:
            return VulnerabilityCheck(False, f"{version.major}.{version.minor} shipped patched")
        if is_below(version, patched):
            return VulnerabilityCheck(True, f"{version} is below {patched}")
        return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

    def _patch(self, package: str, version: Version) -> Optional[PatchRecommendation]:
        if package != "next":
            patched = line_patch(RSC_PATCHED_LINES, version)
            return PatchRecommendation(patched) if patched else None

        if version.major in (13, 14):
            if _is_14_3_canary(version):
                return PatchRecommendation(
                    NEXT_LEGACY_PATCH,
                    alternative=NEXT_CANARY_CUTOFFS[15],
                    note="14.3 canaries have no patched release; downgrade to 14.2.x stable",
                )
            return PatchRecommendation(NEXT_LEGACY_PATCH)

        if version.is_canary:
            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            return PatchRecommendation(cutoff) if cutoff else None

        patched = line_patch(NEXT_PATCHED_LINES, version)
        return PatchRecommendation(patched) if patched else None
