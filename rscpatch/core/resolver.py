"""Vulnerability resolution for declared dependencies.

The :class:`Resolver` turns a package name plus its declared specifier
into a :class:`~rscpatch.models.finding.Finding` by consulting the
advisory registry.

A specifier often does not pin the version that is actually installed:
``^15.3.0`` may resolve to ``15.3.4``, and ``latest`` or ``workspace:*``
name no version at all. In those cases the resolver asks an
*installed-version lookup* (a plain callable supplied by the caller) for
the concrete version and evaluates that instead.

A dependency whose version cannot be determined by any means is never
treated as safe: it is reported under the ``UNKNOWN`` advisory id with a
conservative recommendation.

Typical usage::

    resolver = Resolver(build_default_registry())

    finding = resolver.analyze(
        "next",
        "^15.3.0",
        installed_lookup=lambda name: "15.3.4",
        origin=Origin.RUNTIME,
    )
    [m.advisory_id for m in finding.matched_advisories]
    # ['CVE-2025-66478', 'CVE-2025-55184', 'CVE-2025-55183', 'CVE-2025-67779']
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from rscpatch.advisories import AdvisoryRegistry, build_default_registry
from rscpatch.constants import SAFE_FALLBACK_VERSIONS, UNKNOWN_ADVISORY_ID
from rscpatch.models.advisory import Severity
from rscpatch.models.finding import Finding, MatchedAdvisory, Origin
from rscpatch.utils.logger import get_logger
from rscpatch.utils.version_utils import (
    has_range_specifier,
    is_unparseable_spec,
    parse_version,
)

logger = get_logger("resolver")

#: ``package -> installed version`` callable supplied by the caller.
InstalledLookup = Callable[[str], Optional[str]]

UNKNOWN_VERSION_NOTE = (
    "Could not determine installed version - run your package manager's "
    "install command first, or pin to a safe version"
)


def needs_installed_version(specifier: str) -> bool:
    """Return ``True`` when ``specifier`` does not pin one concrete version."""
    return (
        is_unparseable_spec(specifier)
        or parse_version(specifier) is None
        or has_range_specifier(specifier)
    )


class Resolver:
    """Evaluate declared dependencies against an advisory registry.

    The resolver holds no state besides the registry, so a single instance
    can be shared across every manifest of a scan.

    Args:
        registry: Advisories to evaluate. Defaults to
            :func:`~rscpatch.advisories.build_default_registry`.
    """

    def __init__(self, registry: Optional[AdvisoryRegistry] = None) -> None:
        self.registry: AdvisoryRegistry = (
            registry if registry is not None else build_default_registry()
        )

    # ------------------------------------------------------------------
    # Single package
    # ------------------------------------------------------------------

    def evaluate(self, package: str, version: str) -> List[MatchedAdvisory]:
        """Return the advisories matching a concrete version, in registry order."""
        matches: List[MatchedAdvisory] = []

        for advisory in self.registry.advisories_for(package):
            check = advisory.is_vulnerable(package, version)
            if not check.vulnerable:
                logger.debug("%s@%s clear of %s: %s", package, version, advisory.id, check.reason)
                continue

            logger.debug("%s@%s matches %s: %s", package, version, advisory.id, check.reason)
            patch = advisory.get_patched_version(package, version)
            matches.append(
                MatchedAdvisory(
                    advisory_id=advisory.id,
                    severity=advisory.severity,
                    recommended=patch.recommended if patch else None,
                    alternative=patch.alternative if patch else None,
                    note=patch.note if patch else None,
                )
            )

        return matches

    def analyze(
        self,
        package: str,
        declared: str,
        installed_lookup: Optional[InstalledLookup] = None,
        origin: Optional[Origin] = None,
    ) -> Finding:
        """Evaluate one declared dependency.

        Args:
            package: Package name.
            declared: Specifier as written in the manifest.
            installed_lookup: Callable returning the installed version of a
                package, or ``None``. Called at most once, and only when
                ``declared`` does not pin a concrete version.
            origin: Manifest block the specifier came from.

        Returns:
            A :class:`Finding`; its ``matched_advisories`` is empty when the
            package is not affected.
        """
        version = declared
        display = declared
        installed: Optional[str] = None

        if installed_lookup is not None and needs_installed_version(declared):
            installed = installed_lookup(package)
            if installed:
                logger.debug("%s declared %r, installed %s", package, declared, installed)
                display = f"{declared} (installed: {installed})"
                version = installed

        matches = self.evaluate(package, version)

        if not matches and not installed and is_unparseable_spec(declared):
            logger.info("Cannot determine the version of %s (%r)", package, declared)
            matches = [
                MatchedAdvisory(
                    advisory_id=UNKNOWN_ADVISORY_ID,
                    severity=Severity.UNKNOWN,
                    recommended=SAFE_FALLBACK_VERSIONS.get(package),
                    note=UNKNOWN_VERSION_NOTE,
                )
            ]

        return Finding(
            package=package,
            declared_specifier=declared,
            observed_version=version,
            display_version=display,
            matched_advisories=matches,
            origin_kind=origin,
        )

    # ------------------------------------------------------------------
    # Whole manifest
    # ------------------------------------------------------------------

    def analyze_manifest(
        self,
        dependency_map: Mapping[str, Any],
        installed_lookup: Optional[InstalledLookup] = None,
    ) -> List[Finding]:
        """Evaluate every watched package declared in a manifest.

        Args:
            dependency_map: Parsed ``package.json`` (or any mapping with
                ``dependencies`` / ``devDependencies`` blocks).
            installed_lookup: See :meth:`analyze`. Results are cached so the
                lookup runs at most once per package.

        Returns:
            Vulnerable findings only, one per ``(package, block)``.
        """
        lookup = _memoize(installed_lookup) if installed_lookup is not None else None
        findings: List[Finding] = []

        for package in self.registry.all_packages():
            for origin in (Origin.RUNTIME, Origin.DEVELOPMENT):
                block = dependency_map.get(origin.manifest_key)
                if not isinstance(block, Mapping):
                    continue

                declared = block.get(package)
                if not isinstance(declared, str):
                    continue

                finding = self.analyze(package, declared, lookup, origin)
                if finding.is_vulnerable:
                    findings.append(finding)

        return findings


def _memoize(lookup: InstalledLookup) -> InstalledLookup:
    """Cache a lookup's answers for the duration of one manifest."""
    cache: Dict[str, Optional[str]] = {}

    def cached(package: str) -> Optional[str]:
        if package not in cache:
            cache[package] = lookup(package)
        return cache[package]

    return cached
