"""
Utility helpers for rscpatch.

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers and project discovery
- Package manager detection, lookups and installs
- Version parsing and specifier rewriting

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from rscpatch.utils.filesystem import (
    create_backup,
    find_package_jsons,
    find_project_root,
    iter_project_dirs,
    safe_read_file,
    safe_write_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from rscpatch.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_to_level,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from rscpatch.utils.console import (
    colorize_severity,
    confirm,
    get_raw_console,
    is_interactive,
    print_error,
    print_info,
    print_plain,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
    set_color,
)

# ---------------------------------------------------------------------------
# Package manager utilities
# ---------------------------------------------------------------------------

from rscpatch.utils.package_manager import (
    detect_package_manager,
    get_installed_version,
    run_install,
)

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from rscpatch.utils.version_utils import (
    classify_unsupported_range,
    compare_versions,
    get_operator,
    parse_version,
    reconstruct_specifier,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "confirm",
    "is_interactive",
    "print_error",
    "print_info",
    "print_plain",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "set_color",
    "colorize_severity",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "verbosity_to_level",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "create_backup",
    "iter_project_dirs",
    "find_package_jsons",
    "find_project_root",
    # Package managers
    "detect_package_manager",
    "get_installed_version",
    "run_install",
    # Version utilities
    "classify_unsupported_range",
    "compare_versions",
    "get_operator",
    "parse_version",
    "reconstruct_specifier",
]
