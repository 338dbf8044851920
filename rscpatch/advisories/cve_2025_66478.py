"""CVE-2025-66478: React2Shell remote code execution in Next.js.

Next.js bundles its own copy of the React Flight server runtime, so the
App Router inherited the deserialization flaw of CVE-2025-55182. The
standalone ``react-server-dom-*`` bindings are listed here too, with the
same patch lines, because projects using them directly are exposed to the
same exploit chain.

Boundary policy:

- ``next`` stable and rc releases before 15.0.0 are not affected.
- 14.x canaries from ``14.3.0-canary.77`` on shipped the vulnerable runtime.
  That line never got a patched canary; the fix is to go back to 14.2.x
  stable or forward to a patched 15 canary.
- 15.x and 16.x minors missing from the table (15.6+, 16.1+ stable) were
  released after the fix and are assumed safe.
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
    (15, 0): "15.0.5",
    (15, 1): "15.1.9",
    (15, 2): "15.2.6",
    (15, 3): "15.3.6",
    (15, 4): "15.4.8",
    (15, 5): "15.5.7",
    (16, 0): "16.0.7",
}

# First vulnerable 14.x canary
NEXT_14_CANARY_FLOOR = "14.3.0-canary.77"
NEXT_14_STABLE = "14.2.33"

# First patched canary per major
NEXT_CANARY_CUTOFFS = {
    15: "15.6.0-canary.58",
    16: "16.1.0-canary.12",
}

RSC_PATCHED_LINES = {
    (19, 0): "19.0.1",
    (19, 1): "19.1.2",
    (19, 2): "19.2.1",
}


class React2ShellAdvisory(Advisory):
    id = "CVE-2025-66478"
    severity = Severity.CRITICAL
    description = "Remote code execution via React Server Components in Next.js (React2Shell)"
    url = "https://nextjs.org/blog/CVE-2025-66478"
    packages = frozenset(("next", *RSC_PACKAGES))

    def _check(self, package: str, version: Version) -> VulnerabilityCheck:
        if package == "next":
            return self._check_next(version)

        patched = line_patch(RSC_PATCHED_LINES, version)
        if patched is None:
            return VulnerabilityCheck(False, f"{version} is outside the affected 19.x lines")
        if is_below(version, patched):
            return VulnerabilityCheck(True, f"{version} is below {patched}")
        return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

    def _check_next(self, version: Version) -> VulnerabilityCheck:
        if version.is_canary:
            if version.major == 14:
                if is_below(version, NEXT_14_CANARY_FLOOR):
                    return VulnerabilityCheck(False, "canary predates the vulnerable runtime")
                return VulnerabilityCheck(True, "14.3 canaries ship the vulnerable runtime")

            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            if cutoff is None:
                return VulnerabilityCheck(False, f"no {version.major}.x canaries are affected")
            if is_below(version, cutoff):
                return VulnerabilityCheck(True, f"canary is below {cutoff}")
            return VulnerabilityCheck(False, f"canary includes the fix from {cutoff}")

        patched = line_patch(NEXT_PATCHED_LINES, version)
        if patched is None:
            if version.major < 15:
                return VulnerabilityCheck(False, "release predates the App Router RSC runtime")
            return VulnerabilityCheck(False, f"{version.major}.{version.minor} shipped patched")
        if is_below(version, patched):
            return VulnerabilityCheck(True, f"{version} is below {patched}")
        return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

    def _patch(self, package: str, version: Version) -> Optional[PatchRecommendation]:
        if package != "next":
            patched = line_patch(RSC_PATCHED_LINES, version)
            return PatchRecommendation(patched) if patched else None

        if version.is_canary:
            if version.major == 14:
                return PatchRecommendation(
                    NEXT_14_STABLE,
                    alternative=NEXT_CANARY_CUTOFFS[15],
                    note="14.3 canaries have no patched release; downgrade to 14.2.x stable",
                )
            cutoff = NEXT_CANARY_CUTOFFS.get(version.major)
            return PatchRecommendation(cutoff) if cutoff else None

        patched = line_patch(NEXT_PATCHED_LINES, version)
        return PatchRecommendation(patched) if patched else None
