"""
rscpatch version information.

This module provides a single source of truth for the package version.

Version format:
    MAJOR.MINOR.PATCH[.devN]
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Main version (single source of truth)
# ---------------------------------------------------------------------------

__version__ = "0.3.0"


# ---------------------------------------------------------------------------
# Structured version metadata
# ---------------------------------------------------------------------------


def _parse_version(version: str):
    """
    Internal helper to break the package version into components.

    Returns:
        dict: {
            "major": int,
            "minor": int,
            "patch": int,
            "prerelease": str | None,
        }
    """

    pattern = r"^(\d+)\.(\d+)\.(\d+)(?:[.-]([a-zA-Z0-9]+))?$"
    match = re.match(pattern, version)

    if not match:
        error_message = f"Invalid version string: {version}"
        raise ValueError(error_message)

    major, minor, patch, pre = match.groups()

    return {
        "major": int(major),
        "minor": int(minor),
        "patch": int(patch),
        "prerelease": pre,
    }


VERSION_INFO = _parse_version(__version__)


# ---------------------------------------------------------------------------
# Human-readable version (for CLI)
# ---------------------------------------------------------------------------

VERSION_STRING = f"rscpatch {__version__}"
