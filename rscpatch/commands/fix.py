"""Fix command implementation for rscpatch.

Rewrites every vulnerable ``next`` / ``react-server-dom-*`` specifier to
the smallest version that clears all applicable advisories, then runs the
project's package manager so the lock file (and ``node_modules``) follow.

Specifier operators survive the rewrite: ``^15.3.0`` becomes ``^15.3.8``.
Shapes that cannot be rewritten safely (``15.x``, ``<16``, ``a || b``)
become exact pins.

Typical usage::

    # Preview the plan
    $ rscpatch fix --dry-run

    # Non-interactive, refresh lock files only
    $ rscpatch fix --yes --lockfile-only

    # Edit package.json files and leave installs to the user
    $ rscpatch fix --yes --no-install
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import click
from rich.markup import escape

from rscpatch.core import ScanReport, apply_fixes, scan_project
from rscpatch.exceptions import RscPatchError
from rscpatch.context import pass_context, RscPatchContext
from rscpatch.commands.check import print_advisory_banner, relative_to, render_report
from rscpatch.advisories import build_default_registry
from rscpatch.core.resolver import Resolver
from rscpatch.utils import (
    confirm,
    detect_package_manager,
    find_project_root,
    get_logger,
    get_raw_console,
    is_interactive,
    print_error,
    print_info,
    print_success,
    print_warning,
    run_install,
)

logger = get_logger("commands.fix")


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    help="Show the planned changes without applying them.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip the confirmation prompt.",
)
@click.option(
    "--lockfile-only",
    is_flag=True,
    help="Refresh lock files without installing packages.",
)
@click.option(
    "--no-install",
    is_flag=True,
    help="Only edit package.json files; do not run the package manager.",
)
@pass_context
def fix(
    ctx: RscPatchContext,
    path: Path,
    dry_run: bool,
    yes: bool,
    lockfile_only: bool,
    no_install: bool,
) -> None:
    """Patch vulnerable dependencies under PATH.

    Shows the planned changes, asks for confirmation (unless --yes),
    updates each package.json and then runs npm, yarn, pnpm or bun once
    per project root.

    Exits with status 0 when everything was patched or nothing was
    vulnerable, and 1 when the fix was declined or an install failed.
    """
    lockfile_only = lockfile_only or ctx.config.lockfile_only

    try:
        success = _run_fix(ctx, path, dry_run, yes, lockfile_only, no_install)
    except RscPatchError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in fix command")
        sys.exit(1)

    sys.exit(0 if success else 1)


def _run_fix(
    ctx: RscPatchContext,
    path: Path,
    dry_run: bool,
    skip_confirm: bool,
    lockfile_only: bool,
    no_install: bool,
) -> bool:
    """Plan, confirm, apply and install. Returns ``False`` on decline or failure."""
    registry = build_default_registry()
    print_advisory_banner(registry)

    # Lock files are reported by ``check``; fixes are driven by manifests
    report = scan_project(
        path,
        resolver=Resolver(registry),
        scan_lockfiles=False,
        use_package_manager=ctx.config.use_package_manager,
        skip_dirs=ctx.config.skip_dirs,
    )

    if report.manifests_scanned == 0:
        print_warning(f"No package.json files found in {escape(str(path))}")
        return True

    if not report.manifests:
        print_success("No vulnerable packages found!")
        return True

    render_report(report, path, "table")

    if dry_run:
        print_info("\nDry run - no changes made.")
        return True

    if not skip_confirm:
        if not is_interactive():
            print_warning("Running in non-interactive mode; use --yes to apply fixes.")
            return False
        if not confirm("\nApply fixes?", default=True):
            print_warning("Fix skipped. Your project remains vulnerable.")
            return False

    modified_dirs = _apply_report(report, path)

    if not modified_dirs:
        print_warning("No files were modified (patches may require manual intervention).")
        return True

    if no_install:
        print_success("\nPatches applied. Run your package manager's install command next.")
        return True

    if _install(modified_dirs, path, lockfile_only):
        if lockfile_only:
            print_success("\nPatches applied and lock files updated!")
            print_info("Run your package manager's install command to download the updated packages.")
        else:
            print_success("\nPatches applied!")
        return True

    print_warning("\nSome install commands had issues; the package.json files have been updated.")
    print_info("Please run the install command manually in the affected directories.")
    return False


def _apply_report(report: ScanReport, root: Path) -> List[Path]:
    """Write every manifest's fixes; return the directories that changed."""
    modified: List[Path] = []

    for manifest in report.manifests:
        if not manifest.applicable_fixes:
            logger.info("No patched release for %s; skipping", manifest.path)
            continue

        if apply_fixes(manifest.path, manifest.applicable_fixes):
            print_success(f"Updated {escape(relative_to(manifest.path, root))}")
            modified.append(Path(manifest.path).parent)

    return modified


def _install(modified_dirs: List[Path], root: Path, lockfile_only: bool) -> bool:
    """Run the package manager once per project root. ``True`` if all succeeded."""
    roots: Dict[Path, str] = {}
    for directory in modified_dirs:
        project_root = find_project_root(directory)
        if project_root not in roots:
            roots[project_root] = detect_package_manager(project_root)

    console = get_raw_console()
    console.print(
        "\n[info]Updating lock files...[/info]" if lockfile_only else "\n[info]Installing dependencies...[/info]"
    )

    all_succeeded = True
    for project_root, manager in roots.items():
        location = relative_to(str(project_root), root.resolve()) or "."
        console.print(f"[dim]{escape(location)} ({manager})[/dim]")
        try:
            succeeded = run_install(manager, project_root, lockfile_only=lockfile_only)
        except RscPatchError as exc:
            print_error(str(exc))
            succeeded = False
        all_succeeded = all_succeeded and succeeded

    return all_succeeded
