"""
forge.engine.version — SemanticVersion and the precedence comparator
======================================================================

Every versioned record in the Forge (mod versions, add-on versions, SPT
releases) is ordered by the single rule implemented here:

1. ``major``, then ``minor``, then ``patch``, numerically.
2. For an equal numeric triple, a final release (empty ``pre_release``)
   is newer than any pre-release.
3. Two pre-releases of the same triple compare as whole strings.

Build metadata is carried for display only and never affects ordering or
equality.  The SQL ``ORDER BY`` clauses built by
:meth:`forge.database.models.VersionColumnsMixin.version_ordering` encode
the same rule, so database listings and in-memory sorts always agree.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Protocol, TypeVar

import semver

from forge.errors import InvalidVersionNumber

logger = logging.getLogger(__name__)

__all__ = [
    "Ordering",
    "SemanticVersion",
    "VersionedEntity",
    "ZERO_VERSION",
    "compare",
    "latest",
    "parse_version",
    "parse_version_strict",
    "without_v_prefix",
    "sort_key",
    "sort_versions",
]

T = TypeVar("T")


class Ordering(enum.IntEnum):
    """Three-way comparison result."""
    LESS = -1
    EQUAL = 0
    GREATER = 1

    def reverse(self) -> Ordering:
        return Ordering(-self.value)


# ---------------------------------------------------------------------------
# SemanticVersion — immutable parsed version
# ---------------------------------------------------------------------------
@total_ordering
@dataclass(frozen=True, slots=True)
class SemanticVersion:
    """A parsed ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`` version.

    An empty ``pre_release`` denotes a final release.
    """

    major: int = 0
    minor: int = 0
    patch: int = 0
    pre_release: str = ""
    build: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(
                f"Version components must be non-negative: "
                f"{self.major}.{self.minor}.{self.patch}"
            )

    @property
    def is_pre_release(self) -> bool:
        return self.pre_release != ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release:
            text += f"-{self.pre_release}"
        if self.build:
            text += f"+{self.build}"
        return text

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) is Ordering.LESS


ZERO_VERSION = SemanticVersion()


class VersionedEntity(Protocol):
    """Anything that carries a :class:`SemanticVersion` plus its own identity."""

    @property
    def semantic_version(self) -> SemanticVersion: ...


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def without_v_prefix(text: str) -> str:
    """Trim whitespace and at most one leading ``v``/``V``."""
    text = text.strip()
    return text[1:] if text[:1] in ("v", "V") else text


def parse_version_strict(text: str | int) -> SemanticVersion:
    """Parse *text*, raising :class:`InvalidVersionNumber` if it is not semver.

    A leading ``v``/``V`` is ignored.
    """
    raw = without_v_prefix(str(text))
    try:
        parsed = semver.Version.parse(raw)
    except (ValueError, TypeError) as exc:
        raise InvalidVersionNumber(f"Invalid SemVer: {text!r}") from exc

    return SemanticVersion(
        major=parsed.major,
        minor=parsed.minor,
        patch=parsed.patch,
        pre_release=parsed.prerelease or "",
        build=parsed.build or "",
    )


def parse_version(text: str | int | None) -> SemanticVersion:
    """Parse *text* into a :class:`SemanticVersion`.

    Anything that is not a valid semantic version (including ``None`` and
    the empty string) becomes :data:`ZERO_VERSION`; this never raises.
    """
    if text is None:
        return ZERO_VERSION
    try:
        return parse_version_strict(text)
    except InvalidVersionNumber:
        logger.debug("Unparseable version %r, treating as 0.0.0", text)
        return ZERO_VERSION


# ---------------------------------------------------------------------------
# The comparator
# ---------------------------------------------------------------------------
def _cmp(a, b) -> Ordering:
    if a < b:
        return Ordering.LESS
    if a > b:
        return Ordering.GREATER
    return Ordering.EQUAL


def compare(a: SemanticVersion, b: SemanticVersion) -> Ordering:
    """Compare two versions by release precedence.

    Direction is the caller's concern: this always answers "is *a* older
    than, the same as, or newer than *b*".
    """
    for left, right in ((a.major, b.major), (a.minor, b.minor), (a.patch, b.patch)):
        result = _cmp(left, right)
        if result is not Ordering.EQUAL:
            return result

    if a.pre_release == b.pre_release:
        return Ordering.EQUAL
    # Final release outranks any pre-release of the same triple
    if not a.pre_release:
        return Ordering.GREATER
    if not b.pre_release:
        return Ordering.LESS
    return _cmp(a.pre_release, b.pre_release)


def sort_key(version: SemanticVersion) -> tuple[int, int, int, int, str]:
    """Tuple key that orders exactly like :func:`compare`."""
    return (
        version.major,
        version.minor,
        version.patch,
        0 if version.pre_release else 1,
        version.pre_release,
    )


# ---------------------------------------------------------------------------
# Collection helpers
# ---------------------------------------------------------------------------
def _identity(item):
    return item


def sort_versions(
    items: Iterable[T],
    *,
    key: Callable[[T], SemanticVersion] | None = None,
    descending: bool = False,
) -> list[T]:
    """Return *items* sorted by version.

    *key* extracts the :class:`SemanticVersion` from each item (defaults to
    the item itself).  The sort is stable, so equal versions keep their
    input order; pre-sort by an identifier for a strict total order.
    """
    extract = key or _identity
    return sorted(items, key=lambda item: sort_key(extract(item)), reverse=descending)


def latest(
    items: Iterable[T],
    *,
    key: Callable[[T], SemanticVersion] | None = None,
) -> T | None:
    """Return the newest item in *items*, or ``None`` if empty.

    On ties the first occurrence wins.
    """
    extract = key or _identity
    best: T | None = None
    best_version: SemanticVersion | None = None
    for item in items:
        version = extract(item)
        if best_version is None or compare(version, best_version) is Ordering.GREATER:
            best, best_version = item, version
    return best
