"""CVE-2025-55182: pre-authentication RCE in the React Flight server runtime.

Affects the ``react-server-dom-*`` bindings in 19.0.0, 19.1.0, 19.1.1 and
19.2.0. React 18 and earlier never shipped the vulnerable decoder; 19.3+
is assumed safe.
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

PATCHED_LINES = {
    (19, 0): "19.0.1",
    (19, 1): "19.1.2",
    (19, 2): "19.2.1",
}


class FlightDeserializationAdvisory(Advisory):
    id = "CVE-2025-55182"
    severity = Severity.CRITICAL
    description = "Unauthenticated remote code execution in React Server Components"
    url = "https://react.dev/blog/2025/12/03/critical-security-vulnerability-in-react-server-components"
    packages = frozenset(RSC_PACKAGES)

    def _check(self, package: str, version: Version) -> VulnerabilityCheck:
        if version.major < 19:
            return VulnerabilityCheck(False, "React before 19 is not affected")

        patched = line_patch(PATCHED_LINES, version)
        if patched is None:
            return VulnerabilityCheck(False, f"{version.major}.{version.minor} shipped patched")
        if is_below(version, patched):
            return VulnerabilityCheck(True, f"{version} is below {patched}")
        return VulnerabilityCheck(False, f"{version} includes the fix from {patched}")

    def _patch(self, package: str, version: Version) -> Optional[PatchRecommendation]:
        patched = line_patch(PATCHED_LINES, version)
        return PatchRecommendation(patched) if patched else None
