"""
Shared context object for rscpatch CLI commands.

The group callback in :mod:`rscpatch.cli` fills one
:class:`RscPatchContext` per invocation; subcommands receive it through
:data:`pass_context`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from rscpatch.config import RscPatchConfig


class RscPatchContext:
    """Per-invocation state shared by rscpatch commands.

    Attributes:
        config_path: Configuration file in use, if any.
        config: Loaded settings (defaults when no file was found).
        verbose: ``-v`` count (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored output is enabled.
    """

    __slots__ = ("config_path", "config", "verbose", "color")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.config: RscPatchConfig = RscPatchConfig()
        self.verbose: int = 0
        self.color: bool = True


#: Click decorator injecting :class:`RscPatchContext` into commands.
pass_context = click.make_pass_decorator(RscPatchContext, ensure=True)
