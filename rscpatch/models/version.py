"""
Version data model for rscpatch.

This module defines the parsed representation of a Node package version
on one of the three release channels published by Next.js and React:
stable (``15.3.7``), release candidate (``15.0.0-rc.1``) and canary
(``15.6.0-canary.59``). It also defines the operator classification used
when a manifest specifier is rewritten.
"""

from __future__ import annotations

from enum import Enum
from functools import total_ordering
from dataclasses import dataclass, field
from typing import Optional, Tuple


class Channel(Enum):
    """Release channel of a version, ordered canary < rc < stable."""

    CANARY = "canary"
    RC = "rc"
    STABLE = "stable"

    @property
    def rank(self) -> int:
        """Sort rank of the channel at an identical ``major.minor.patch``."""
        return _CHANNEL_RANK[self]


_CHANNEL_RANK = {
    Channel.CANARY: 0,
    Channel.RC: 1,
    Channel.STABLE: 2,
}


@total_ordering
@dataclass(frozen=True)
class Version:
    """
    An immutable, parsed version.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        channel: Release channel.
        sequence: rc/canary counter; ``None`` for stable versions.
    """

    major: int
    minor: int
    patch: int
    channel: Channel = Channel.STABLE
    sequence: Optional[int] = None

    # Original text, ignored by equality and hashing
    raw: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.channel is Channel.STABLE and self.sequence is not None:
            raise ValueError("stable versions carry no sequence number")
        if self.channel is not Channel.STABLE and self.sequence is None:
            raise ValueError(f"{self.channel.value} versions require a sequence number")

    @property
    def is_stable(self) -> bool:
        return self.channel is Channel.STABLE

    @property
    def is_rc(self) -> bool:
        return self.channel is Channel.RC

    @property
    def is_canary(self) -> bool:
        return self.channel is Channel.CANARY

    @property
    def line(self) -> Tuple[int, int]:
        """The ``(major, minor)`` release line."""
        return self.major, self.minor

    def sort_key(self) -> Tuple[int, int, int, int, int]:
        """Tuple ordering numeric parts first, then channel, then sequence."""
        return (
            self.major,
            self.minor,
            self.patch,
            self.channel.rank,
            self.sequence if self.sequence is not None else 0,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.is_stable:
            return base
        return f"{base}-{self.channel.value}.{self.sequence}"


class OperatorClass(Enum):
    """How a manifest specifier constrains its version."""

    NONE = "none"
    CARET = "caret"
    TILDE = "tilde"
    GTE = "gte"
    GT = "gt"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class RangeCheck:
    """Result of classifying a specifier as a rewritable range or not.

    Attributes:
        unsupported: ``True`` when the specifier must never be rewritten.
        reason: One of ``less-than-range``, ``hyphen-range``, ``or-range``,
            ``x-range`` when unsupported, else ``None``.
    """

    unsupported: bool
    reason: Optional[str] = None
