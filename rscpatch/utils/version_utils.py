"""
Version parsing, comparison and specifier rewriting for rscpatch.

npm specifiers such as ``^15.3.0`` or ``15.6.0-canary.58`` are not PEP 440
versions, so this module implements the small grammar rscpatch needs:

- ``MAJOR.MINOR.PATCH``
- ``MAJOR.MINOR.PATCH-rc.N``
- ``MAJOR.MINOR.PATCH-canary.N``

Anything else is either *unparseable* (``latest``, ``workspace:*``, a git
URL, ...), which tells the resolver to look for the installed version, or
simply not comparable (``15.x``).

Specifier rewriting keeps ``^``, ``~``, ``>=`` and ``>`` on the new
version. ``<`` and ``<=`` are dropped: an upper bound below the old
vulnerable version says nothing about the new safe one. Shapes that cannot
be rewritten safely (hyphen, OR and x-ranges, less-than bounds) become an
exact pin.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from rscpatch.constants import UNPARSEABLE_PREFIXES, UNPARSEABLE_SPECIFIERS
from rscpatch.models.version import Channel, OperatorClass, RangeCheck, Version

VersionLike = Union[str, Version]

_OPERATOR_CHARS_RE = re.compile(r"^[\^~>=<]+")
_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-(rc|canary)\.(\d+))?$")
_PRESERVED_OPERATOR_RE = re.compile(r"^(>=|>|\^|~)")
_HYPHEN_RANGE_RE = re.compile(r"\d\s+-\s+\d")
_X_SEGMENT_RE = re.compile(r"(?:^|\.)[xX*](?:\.|$)")
_RANGE_PREFIX_RE = re.compile(r"^[\^~>=<]")

_OPERATOR_CLASSES = {
    "^": OperatorClass.CARET,
    "~": OperatorClass.TILDE,
    ">=": OperatorClass.GTE,
    ">": OperatorClass.GT,
    "": OperatorClass.NONE,
}


def strip_operator(spec: str) -> str:
    """Remove leading operator characters (``^ ~ > = <``) and whitespace."""
    return _OPERATOR_CHARS_RE.sub("", spec.strip()).strip()


def parse_version(spec: Optional[VersionLike]) -> Optional[Version]:
    """Parse a version or operator-prefixed specifier.

    Args:
        spec: Version string such as ``15.3.0``, ``^15.3.0`` or
            ``15.6.0-canary.58``. A :class:`Version` is returned unchanged.

    Returns:
        Parsed :class:`Version`, or ``None`` when the text does not follow
        the stable/rc/canary grammar.

    Examples:
        >>> str(parse_version("^15.0.0-rc.1"))
        '15.0.0-rc.1'
        >>> parse_version("15.x") is None
        True
    """
    if spec is None:
        return None
    if isinstance(spec, Version):
        return spec

    cleaned = strip_operator(spec)
    match = _VERSION_RE.match(cleaned)
    if not match:
        return None

    major, minor, patch, channel, sequence = match.groups()
    return Version(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        channel=Channel(channel) if channel else Channel.STABLE,
        sequence=int(sequence) if sequence is not None else None,
        raw=cleaned,
    )


def is_unparseable_spec(spec: Optional[str]) -> bool:
    """Return ``True`` when a specifier names no concrete version at all.

    Dist-tags (``latest``, ``next``, ``canary``), wildcards (``*``, ``x``),
    protocol specifiers (``npm:``, ``catalog:``, ``workspace:``) and
    anything path- or URL-like (containing ``/``) qualify. Numeric shapes
    that merely fail :func:`parse_version`, such as ``15.x``, do not.
    """
    if not spec:
        return True

    cleaned = strip_operator(spec).lower()
    return (
        cleaned in UNPARSEABLE_SPECIFIERS
        or cleaned.startswith(tuple(UNPARSEABLE_PREFIXES))
        or "/" in cleaned
    )


def compare_versions(a: Optional[VersionLike], b: Optional[VersionLike]) -> int:
    """Compare two versions.

    Numeric parts dominate; at an identical ``major.minor.patch`` the
    channel orders canary < rc < stable, and within one pre-release channel
    the sequence number decides.

    Returns:
        A negative number, zero, or a positive number. Zero is also returned
        when either side cannot be parsed.

    Examples:
        >>> compare_versions("15.3.7", "15.3.6") > 0
        True
        >>> compare_versions("15.6.0-canary.58", "15.6.0-rc.0") < 0
        True
    """
    left = parse_version(a)
    right = parse_version(b)

    if left is None or right is None:
        return 0

    key_a = left.sort_key()
    key_b = right.sort_key()
    return (key_a > key_b) - (key_a < key_b)


def has_range_specifier(spec: Optional[str]) -> bool:
    """Return ``True`` when a specifier may resolve to more than one version."""
    if not spec:
        return False
    return bool(_RANGE_PREFIX_RE.match(spec.strip())) or " " in spec or "||" in spec


def get_operator(spec: Optional[str]) -> str:
    """Return the preservable leading operator of a specifier.

    Only ``^``, ``~``, ``>=`` and ``>`` are returned; ``<``, ``<=`` and
    exact versions yield ``""``.
    """
    if not spec:
        return ""
    match = _PRESERVED_OPERATOR_RE.match(spec.strip())
    return match.group(1) if match else ""


def classify_unsupported_range(spec: Optional[str]) -> RangeCheck:
    """Decide whether a specifier is a range shape that cannot be rewritten.

    Checks run in order and the first match wins: hyphen range
    (``15.0.0 - 16.0.0``), OR range (``||``), x-range (``15.x``,
    ``15.3.*``), less-than bound (``<16``, ``<=16``).
    """
    if not spec:
        return RangeCheck(unsupported=False)

    text = spec.strip()

    if _HYPHEN_RANGE_RE.search(text):
        return RangeCheck(unsupported=True, reason="hyphen-range")

    if "||" in text:
        return RangeCheck(unsupported=True, reason="or-range")

    if _X_SEGMENT_RE.search(strip_operator(text)):
        return RangeCheck(unsupported=True, reason="x-range")

    if text.startswith("<"):
        return RangeCheck(unsupported=True, reason="less-than-range")

    return RangeCheck(unsupported=False)


def get_operator_class(spec: Optional[str]) -> OperatorClass:
    """Classify a specifier's operator for reconstruction purposes."""
    if classify_unsupported_range(spec).unsupported:
        return OperatorClass.UNSUPPORTED
    return _OPERATOR_CLASSES[get_operator(spec)]


def reconstruct_specifier(original: Optional[str], new_version: str) -> str:
    """Rewrite a specifier to target ``new_version``.

    The preservable operator of ``original`` is carried over. Unsupported
    shapes are replaced by an exact pin.

    Examples:
        >>> reconstruct_specifier("^15.3.0", "15.3.7")
        '^15.3.7'
        >>> reconstruct_specifier("15.0.0 - 16.0.0", "15.3.7")
        '15.3.7'
    """
    if classify_unsupported_range(original).unsupported:
        return new_version
    return get_operator(original) + new_version
