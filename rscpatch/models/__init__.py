"""
Unified data model exports for rscpatch.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``rscpatch.models`` instead of individual submodules.

Example:
    >>> from rscpatch.models import Version, Finding, Fix
"""

from __future__ import annotations

from rscpatch.models.version import Channel, OperatorClass, RangeCheck, Version
from rscpatch.models.advisory import (
    Advisory,
    PatchRecommendation,
    Severity,
    VulnerabilityCheck,
)
from rscpatch.models.finding import (
    Finding,
    Fix,
    LockfileAnalysis,
    LockfilePackageEntry,
    LockfileScan,
    ManifestAnalysis,
    MatchedAdvisory,
    Origin,
)

__all__ = [
    "Channel",
    "OperatorClass",
    "RangeCheck",
    "Version",
    "Advisory",
    "PatchRecommendation",
    "Severity",
    "VulnerabilityCheck",
    "Finding",
    "Fix",
    "LockfileAnalysis",
    "LockfilePackageEntry",
    "LockfileScan",
    "ManifestAnalysis",
    "MatchedAdvisory",
    "Origin",
]
