"""Minimal-fix planning.

When one package matches several advisories, each advisory proposes its
own patched version. Later patch releases contain the earlier fixes, so the
smallest version satisfying every advisory is the *highest* recommendation.
For example ``next@15.3.4`` matches:

- CVE-2025-66478: patched in 15.3.6
- CVE-2025-55184: patched in 15.3.7
- CVE-2025-55183: patched in 15.3.7

and the planner targets 15.3.7.

Notes and alternatives are not merged: the first one in registry order is
kept and later ones are dropped.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rscpatch.models.advisory import Severity
from rscpatch.models.finding import Finding, Fix, LockfilePackageEntry, Origin
from rscpatch.utils.logger import get_logger
from rscpatch.utils.version_utils import compare_versions

logger = get_logger("planner")


def plan(findings: Sequence[Finding]) -> Fix:
    """Reduce the findings of one package to a single :class:`Fix`.

    Args:
        findings: Non-empty findings, all for the same package. The
            specifier, display version and origin of the first one are
            carried onto the fix.

    Returns:
        The planned :class:`Fix`.

    Raises:
        ValueError: ``findings`` is empty or mixes packages.
    """
    if not findings:
        raise ValueError("plan() requires at least one finding")

    first = findings[0]
    if any(finding.package != first.package for finding in findings):
        raise ValueError("plan() requires findings for a single package")

    target: Optional[str] = None
    cve_ids: List[str] = []
    severity = Severity.UNKNOWN
    note: Optional[str] = None
    alternative: Optional[str] = None

    for finding in findings:
        for match in finding.matched_advisories:
            if match.recommended and (
                target is None or compare_versions(match.recommended, target) > 0
            ):
                target = match.recommended

            if match.advisory_id not in cve_ids:
                cve_ids.append(match.advisory_id)

            if match.severity.rank > severity.rank:
                severity = match.severity

            if note is None and match.note:
                note = match.note
            if alternative is None and match.alternative:
                alternative = match.alternative

    return Fix(
        package=first.package,
        original_specifier=first.declared_specifier,
        current=first.display_version,
        target_version=target,
        cve_ids=cve_ids,
        severity=severity,
        note=note,
        alternative=alternative,
        origin_kind=first.origin_kind,
    )


def plan_fixes(findings: Iterable[Finding]) -> List[Fix]:
    """Plan one :class:`Fix` per ``(package, origin)`` with findings.

    Groups keep first-seen order. Findings with no matched advisories are
    ignored, so packages that are not affected produce no fix.
    """
    groups: Dict[Tuple[str, Optional[Origin]], List[Finding]] = {}

    for finding in findings:
        if not finding.is_vulnerable:
            continue
        groups.setdefault((finding.package, finding.origin_kind), []).append(finding)

    return [plan(group) for group in groups.values()]


def analyze_lockfile_entries(
    entries: Iterable[LockfilePackageEntry],
    resolver,
) -> Optional[List[Fix]]:
    """Evaluate lock file entries and plan their fixes.

    Repeated ``(name, resolved_version)`` pairs (hoisted and nested copies
    of the same release) are evaluated once. Lock files do not distinguish
    runtime from development dependencies, so the fixes carry no origin.

    Args:
        entries: Entries from :func:`rscpatch.core.lockfile.parse_lockfile`.
        resolver: :class:`~rscpatch.core.resolver.Resolver` to evaluate with.

    Returns:
        Fixes in first-seen order, or ``None`` when nothing is affected.
    """
    seen = set()
    findings: List[Finding] = []

    for entry in entries:
        key = (entry.name, entry.resolved_version)
        if key in seen:
            continue
        seen.add(key)

        matches = resolver.evaluate(entry.name, entry.resolved_version)
        if not matches:
            continue

        findings.append(
            Finding(
                package=entry.name,
                declared_specifier=entry.resolved_version,
                observed_version=entry.resolved_version,
                display_version=entry.resolved_version,
                matched_advisories=matches,
            )
        )

    if not findings:
        return None

    # Distinct versions of one package each get their own fix
    fixes = [plan([finding]) for finding in findings]
    logger.debug("Planned %d lock file fix(es)", len(fixes))
    return fixes
