"""
Command-line interface for rscpatch.

Defines the ``rscpatch`` command group, its global options and the
process entry point :func:`main`.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from rscpatch.config import load_config
from rscpatch.__version__ import __version__
from rscpatch.context import RscPatchContext
from rscpatch.exceptions import ConfigError, RscPatchError
from rscpatch.utils.console import print_error, print_warning, set_color
from rscpatch.utils.logger import get_logger, setup_logging, verbosity_to_level

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="RSCPATCH_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="RSCPATCH_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="rscpatch",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """rscpatch: find and patch React Server Components advisories.

    Scans package.json files (and lock files) for Next.js and
    react-server-dom-* versions affected by CVE-2025-66478 (React2Shell),
    CVE-2025-55182, CVE-2025-55183, CVE-2025-55184 and CVE-2025-67779,
    and bumps each one to the smallest version that clears them all.

    \b
    Available commands:
      rscpatch check               Report vulnerable dependencies
      rscpatch fix                 Patch package.json and reinstall

    \b
    Examples:
      rscpatch check
      rscpatch check apps/web --format json
      rscpatch fix --dry-run
      rscpatch -v fix --yes --lockfile-only
    """
    _configure_logging(verbose, color)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    rscpatch_ctx = RscPatchContext()
    rscpatch_ctx.config_path = config or loaded_config.source_path
    rscpatch_ctx.config = loaded_config
    rscpatch_ctx.color = color
    rscpatch_ctx.verbose = verbose
    ctx.obj = rscpatch_ctx

    if color:
        os.environ.pop("NO_COLOR", None)
        set_color(None)
    else:
        os.environ["NO_COLOR"] = "1"
        set_color(False)

    logger.debug("rscpatch v%s", __version__)
    logger.debug("Config path: %s", rscpatch_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int, color: bool = True) -> None:
    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2, use_color=color)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from rscpatch.commands.check import check  # noqa: E402
from rscpatch.commands.fix import fix  # noqa: E402

cli.add_command(check)
cli.add_command(fix)


def main() -> int:
    """Run the CLI and translate failures into exit codes.

    Returns:
        Exit code:
            0   Success
            1   Vulnerabilities found, fix declined or failed, or an error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Abort:
        print_warning("Aborted")
        return 1

    except RscPatchError as exc:
        print_error(str(exc))
        logger.debug("RscPatchError details: %s", exc.details or "<none>", exc_info=True)
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
