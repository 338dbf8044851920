"""CVE-2025-67779: incomplete fix for the Server Function DoS.

The first patch for CVE-2025-55184 missed a variant of the payload. Every
line affected by the original DoS needs one more patch release, so the
affected ranges mirror CVE-2025-55184 with the cutoffs moved up by one.

Boundary policy:

- ``next`` before 13.3.0 is not affected; 13.3.0 up to 14.2.35 and every
  14.3 canary are affected, fixed in 14.2.35.
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
    (15, 0): "15.0.7",
    (15, 1): "15.1.11",
    (15, 2): "15.2.8",
    (15, 3): "15.3.8",
    (15, 4): "15.4.10",
    (15, 5): "15.5.9",
    (16, 0): "16.0.10",
}

NEXT_LEGACY_FLOOR = "13.3.0"
NEXT_LEGACY_PATCH = "14.2.35"

NEXT_CANARY_CUTOFFS = {
    15: "15.6.0-canary.60",
    16: "16.1.0-canary.19",
}

RSC_PATCHED_LINES = {
    (19, 0): "19.0.3",
    (19, 1): "19.1.4",
    (19, 2): "19.2.3",
}


class DoSFollowUpAdvisory(Advisory):
    id = "CVE-2025-67779"
    severity = Severity.HIGH
    description = "Denial of service via crafted Server Function requests (incomplete fix follow-up)"
    url = "https://nextjs.org/blog/security-update-2025-12-11"
    packages = frozenset(("next", *RSC_PACKAGES))

    def _check(self, package: str, version: Version) -> VulnerabilityCheck:
        if package == "next" and version.major in (13, 14):
            if version.is_canary and version.major == 14 and version.minor >= 3:
                return VulnerabilityCheck(True, "14.3 canaries never received the fix")
            if is_below(version, NEXT_LEGACY_FLOOR):
                return VulnerabilityCheck(False, "release predates Server Actions")
            if is_below(version, NEXT_LEGACY_PATCH):
                return VulnerabilityCheck(True, f"{version} is below {NEXT_LEGACY_PATCH}")
            return VulnerabilityCheck(False, f"{version} includes the fix from {NEXT_LEGACY_PATCH}")

        if package == "next" and version.is_canary:
            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            if cutoff is None:
                return VulnerabilityCheck(False, f"no {version.major}.x canaries are affected")
            if is_below(version, cutoff):
                return VulnerabilityCheck(True, f"canary is below {cutoff}")
            return VulnerabilityCheck(False, f"canary includes the fix from {cutoff}")

        table = NEXT_PATCHED_LINES if package == "next" else RSC_PATCHED_LINES
        patched = line_patch(table, version)
        if patched is None:
            return VulnerabilityCheck(False, f"{version.major}.{version.minor} is not an affected line")
        if is_below(version, patched):
            return VulnerabilityCheck(True, f"{version} is below {patched}")
        return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

    def _patch(self, package: str, version: Version) -> Optional[PatchRecommendation]:
        if package == "next" and version.major in (13, 14):
            if version.is_canary and version.major == 14 and version.minor >= 3:
                return PatchRecommendation(
                    NEXT_LEGACY_PATCH,
                    alternative=NEXT_CANARY_CUTOFFS[15],
                    note="14.3 canaries have no patched release; downgrade to 14.2.x stable",
                )
            return PatchRecommendation(NEXT_LEGACY_PATCH)

        if package == "next" and version.is_canary:
            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            return PatchRecommendation(cutoff) if cutoff else None

        table = NEXT_PATCHED_LINES if package == "next" else RSC_PATCHED_LINES
        patched = line_patch(table, version)
        return PatchRecommendation(patched) if patched else None
