"""
rscpatch: vulnerability scanner and fixer for React Server Components.

rscpatch finds Next.js and ``react-server-dom-*`` dependencies affected by
the December 2025 React Server Components advisories (React2Shell and its
follow-ups) and computes the smallest version bump that clears every
applicable advisory at once.

Features include:
    • Stable, release-candidate and canary aware version comparison
    • Self-contained advisory rule tables with remediation hints
    • Lock file scanning (npm, yarn, pnpm) for transitive React copies
    • Range-preserving ``package.json`` rewrites (``^``, ``~``, ``>=``, ``>``)
"""

from __future__ import annotations

from rscpatch.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "rscpatch Contributors"
__license__ = "Apache-2.0"
__description__ = "Detect and patch React Server Components advisories in Node projects."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

from rscpatch.advisories import AdvisoryRegistry, build_default_registry
from rscpatch.core import (
    Resolver,
    analyze_lockfile_entries,
    parse_lockfile,
    plan,
    plan_fixes,
)

__all__ = [
    "__version__",
    "AdvisoryRegistry",
    "build_default_registry",
    "Resolver",
    "plan",
    "plan_fixes",
    "parse_lockfile",
    "analyze_lockfile_entries",
]
