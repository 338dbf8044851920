"""
Executable module for rscpatch.

Running::

    python -m rscpatch

is equivalent to running the ``rscpatch`` console script.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Report a CLI import failure on stderr."""
    try:
        from rscpatch.__version__ import __version__
    except ImportError:
        __version__ = "<unknown>"

    sys.stderr.write(f"rscpatch version: {__version__}\n")
    sys.stderr.write(f"Python version : {sys.version}\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """Entry point for ``python -m rscpatch``.

    Returns:
        Exit code returned by the CLI, or 1 when it cannot be imported.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from rscpatch.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
