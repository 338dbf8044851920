"""Check command implementation for rscpatch.

Scans a project tree for ``next`` and ``react-server-dom-*`` versions
affected by the React Server Components advisories and reports the
smallest version bump that clears every advisory for each package.

Typical usage::

    # Scan the current directory
    $ rscpatch check

    # Machine-readable output for CI
    $ rscpatch check --format json > report.json

    # Manifests only, without lock files
    $ rscpatch check apps/web --no-lockfiles

The command exits with status 1 whenever anything vulnerable is found, so
it can gate a CI pipeline directly.
"""

from __future__ import annotations

import sys
import json
import os
from pathlib import Path
from typing import Any, Dict, List

import click
from click.core import ParameterSource
from rich.markup import escape

from rscpatch.advisories import build_default_registry
from rscpatch.core import Resolver, ScanReport, scan_project
from rscpatch.exceptions import RscPatchError
from rscpatch.context import pass_context, RscPatchContext
from rscpatch.models import Fix
from rscpatch.utils import (
    colorize_severity,
    get_logger,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option(
    "--lockfiles/--no-lockfiles",
    default=True,
    help="Also scan lock files for transitive React copies.",
)
@pass_context
def check(
    ctx: RscPatchContext,
    path: Path,
    format: str,
    lockfiles: bool,
) -> None:
    """Scan PATH for dependencies affected by known RSC advisories.

    Every package.json under PATH is analyzed (node_modules, build output
    and VCS directories are skipped). Ranges and tags such as ``latest``
    are resolved against the installed version when possible.

    Exits with status 1 when a vulnerable dependency is found, 0 otherwise.
    """
    # The config file decides unless the flag was given explicitly
    source = click.get_current_context().get_parameter_source("lockfiles")
    scan_lockfiles = lockfiles if source is ParameterSource.COMMANDLINE else ctx.config.scan_lockfiles

    try:
        vulnerable = _run_check(ctx, path, format.lower(), scan_lockfiles)
    except RscPatchError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in check command")
        sys.exit(1)

    sys.exit(1 if vulnerable else 0)


def _run_check(
    ctx: RscPatchContext,
    path: Path,
    format: str,
    scan_lockfiles: bool,
) -> bool:
    """Scan ``path``, render the report and return whether it is vulnerable."""
    show_progress = format != "json"
    registry = build_default_registry()

    if show_progress:
        print_advisory_banner(registry)

    report = scan_project(
        path,
        resolver=Resolver(registry),
        scan_lockfiles=scan_lockfiles,
        use_package_manager=ctx.config.use_package_manager,
        skip_dirs=ctx.config.skip_dirs,
    )

    if report.manifests_scanned == 0:
        if format == "json":
            click.echo(json.dumps({"vulnerable": False, "reason": "no-package-json"}))
        else:
            print_warning(f"No package.json files found in {escape(str(path))}")
        return False

    if format == "json":
        click.echo(json.dumps(report.to_json(), indent=2))
        return report.is_vulnerable

    print_info(f"Scanned {report.manifests_scanned} package.json file(s)\n")

    if not report.is_vulnerable:
        print_success("No vulnerable packages found!")
        return False

    render_report(report, path, format)
    return True


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def print_advisory_banner(registry) -> None:
    """List the advisories being checked."""
    console = get_raw_console()
    console.print(f"[dim]Checking for {len(registry)} known vulnerabilities:[/dim]")
    for advisory in registry:
        console.print(
            f"  - [bold]{advisory.id}[/bold] ({colorize_severity(advisory.severity.value)}) "
            f"[dim]{advisory.description}[/dim]"
        )
    console.print()


def relative_to(path: str, root: Path) -> str:
    """Display ``path`` relative to ``root`` when it lies below it."""
    try:
        relative = os.path.relpath(path, root)
    except ValueError:
        return path
    return path if relative.startswith("..") else relative


def render_report(report: ScanReport, root: Path, format: str) -> None:
    """Render a vulnerable report in ``table`` or ``simple`` form."""
    if format == "simple":
        _display_simple(report, root)
    else:
        _display_table(report, root)

    print_warning(
        f"\nFound {len(report.manifests)} vulnerable package.json file(s)"
        + (f" and {len(report.lockfiles)} lock file(s)" if report.lockfiles else "")
    )


def _fix_row(location: str, fix: Fix) -> Dict[str, str]:
    target = fix.new_specifier
    return {
        "File": escape(location),
        "Package": escape(fix.package),
        "Current": escape(fix.current),
        "Patched": f"[bold green]{escape(target)}[/bold green]" if target else "[red]?[/red]",
        "Severity": colorize_severity(fix.severity.value),
        "Advisories": ", ".join(fix.cve_ids),
    }


def _collect_notes(fixes: List[Fix]) -> List[str]:
    notes: List[str] = []
    for fix in fixes:
        if fix.note:
            line = f"{fix.package}: {fix.note}"
            if fix.alternative:
                line += f" (alternative: {fix.alternative})"
            if line not in notes:
                notes.append(line)
    return notes


def _display_table(report: ScanReport, root: Path) -> None:
    column_styles: Dict[str, Dict[str, Any]] = {
        "File": {"style": "yellow", "no_wrap": True},
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Current": {"style": "red"},
        "Patched": {"justify": "center"},
        "Severity": {"justify": "center"},
        "Advisories": {"style": "magenta"},
    }

    rows = [
        _fix_row(relative_to(manifest.path, root), fix)
        for manifest in report.manifests
        for fix in manifest.fixes
    ]
    print_table(rows, title="Vulnerable Dependencies", column_styles=column_styles)

    lock_rows = [
        _fix_row(relative_to(analysis.path, root), fix)
        for analysis in report.lockfiles
        for fix in analysis.fixes
    ]
    print_table(lock_rows, title="Lock File Findings", column_styles=column_styles)

    notes = _collect_notes(
        [fix for manifest in report.manifests for fix in manifest.fixes]
        + [fix for analysis in report.lockfiles for fix in analysis.fixes]
    )
    if notes:
        console = get_raw_console()
        console.print("\n[bold]Notes:[/bold]")
        for note in notes:
            console.print(f"  [dim]{escape(note)}[/dim]")


def _display_simple(report: ScanReport, root: Path) -> None:
    console = get_raw_console()

    for manifest in report.manifests:
        console.print(f"[yellow]{escape(relative_to(manifest.path, root))}[/yellow]")
        for fix in manifest.fixes:
            console.print(f"   {escape(str(fix))}")
            if fix.note:
                console.print(f"      [dim]{escape(fix.note)}[/dim]")

    for analysis in report.lockfiles:
        console.print(f"[yellow]{escape(relative_to(analysis.path, root))}[/yellow] [dim](lock file)[/dim]")
        for fix in analysis.fixes:
            console.print(f"   {escape(str(fix))}")
