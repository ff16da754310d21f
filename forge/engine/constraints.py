"""
forge.engine.constraints — Version constraint matching
========================================================

Mod dependencies, add-on compatibility and SPT compatibility are all
declared as Composer-style constraint strings:

====================  ===========================
``*`` / empty         any version
``1.2.3`` / ``=1.2``  exactly 1.2.3 / 1.2.0
``>=1.0 <2.0``        AND (whitespace or comma)
``^1.0 || ^2.0``      OR
``^1.2.3``            >=1.2.3 <2.0.0-0
``^0.3``              >=0.3.0 <0.4.0-0
``~1.2``              >=1.2.0 <2.0.0-0
``~1.2.3``            >=1.2.3 <1.3.0-0
``1.2.*`` / ``1.x``   >=1.2.0 <1.3.0-0 / >=1.0.0 <2.0.0-0
``1.0 - 2.0``         >=1.0.0 <2.1.0-0
``1.0.0 - 2.0.0``     >=1.0.0 <=2.0.0
====================  ===========================

Bounds are checked with :func:`forge.engine.version.compare`, so
pre-release handling is exactly the precedence rule used everywhere else:
``1.0.0-beta`` satisfies ``<1.0.0`` and not ``>=1.0.0``.

Upper bounds derived from ``^``, ``~``, wildcards and partial hyphen
ranges are written ``<X.Y.Z-0`` above: they compare the numeric triple
only, so no pre-release of the next version slips in (``2.0.0-beta``
does not satisfy ``^1.0``).
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import lru_cache

from forge.engine.version import (
    Ordering,
    SemanticVersion,
    compare,
    parse_version,
)
from forge.errors import InvalidConstraint

__all__ = [
    "Comparator",
    "Constraint",
    "parse_constraint",
    "satisfied_by",
    "satisfies",
]

_PARTIAL_REGEX = re.compile(
    r"^v?(?P<major>\d+|[*xX])"
    r"(?:\.(?P<minor>\d+|[*xX]))?"
    r"(?:\.(?P<patch>\d+|[*xX]))?"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+[0-9A-Za-z.-]+)?$"
)
_WILDCARD_REGEX = re.compile(r"^v?(?:\d+\.){0,2}[*xX](?:\.[*xX])*$")
_TERM_REGEX = re.compile(r"^(?P<op>\^|~|>=|<=|!=|==|>|<|=)?(?P<version>\S+)$")
_HYPHEN_REGEX = re.compile(r"^(?P<low>\S+)\s+-\s+(?P<high>\S+)$")
_OPERATOR_SPACE_REGEX = re.compile(r"(\^|~|>=|<=|!=|==|>|<|=)\s+")
_OR_REGEX = re.compile(r"\s*\|\|?\s*")
_AND_REGEX = re.compile(r"[\s,]+")

_OPERATORS: dict[str, Callable[[int, int], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


# ---------------------------------------------------------------------------
# Parsed representation
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Comparator:
    """A single ``<op> <version>`` bound.

    With ``numeric`` set only ``(major, minor, patch)`` of the candidate is
    compared, which drops its pre-release label.
    """

    op: str
    version: SemanticVersion
    numeric: bool = False

    def matches(self, version: SemanticVersion) -> bool:
        if self.numeric:
            version = SemanticVersion(version.major, version.minor, version.patch)
        return _OPERATORS[self.op](int(compare(version, self.version)), int(Ordering.EQUAL))

    def __str__(self) -> str:
        if self.numeric:
            return f"{self.op}{self.version}-0"
        return f"{self.op}{self.version}"


@dataclass(frozen=True, slots=True)
class Constraint:
    """Disjunction of conjunctions of :class:`Comparator` bounds.

    An alternative with no comparators matches every version.
    """

    text: str
    alternatives: tuple[tuple[Comparator, ...], ...]

    def matches(self, version: SemanticVersion) -> bool:
        return any(
            all(c.matches(version) for c in group) for group in self.alternatives
        )

    def __str__(self) -> str:
        return self.text


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def _parse_partial(text: str, source: str) -> tuple[list[int], str]:
    """Return the explicitly given numeric parts (wildcards end the list)."""
    match = _PARTIAL_REGEX.match(text)
    if match is None:
        raise InvalidConstraint(f"Invalid version {text!r} in constraint {source!r}")

    parts: list[int] = []
    for name in ("major", "minor", "patch"):
        value = match.group(name)
        if value is None or value in "*xX":
            break
        parts.append(int(value))
    return parts, match.group("pre") or ""


def _padded(parts: list[int], pre: str = "") -> SemanticVersion:
    padded = parts + [0] * (3 - len(parts))
    return SemanticVersion(padded[0], padded[1], padded[2], pre)


def _bumped(parts: list[int], index: int) -> SemanticVersion:
    """Smallest version above every version sharing ``parts[:index + 1]``."""
    head = parts[:index] + [parts[index] + 1]
    return _padded(head)


def _below(parts: list[int], index: int) -> Comparator:
    return Comparator("<", _bumped(parts, index), numeric=True)


def _caret(parts: list[int], pre: str) -> tuple[Comparator, ...]:
    index = next((i for i, p in enumerate(parts) if p != 0), len(parts) - 1)
    return (
        Comparator(">=", _padded(parts, pre)),
        _below(parts, index),
    )


def _tilde(parts: list[int], pre: str) -> tuple[Comparator, ...]:
    index = 0 if len(parts) == 1 else len(parts) - 2
    return (
        Comparator(">=", _padded(parts, pre)),
        _below(parts, index),
    )


def _wildcard(parts: list[int]) -> tuple[Comparator, ...]:
    if not parts:
        return ()
    return (
        Comparator(">=", _padded(parts)),
        _below(parts, len(parts) - 1),
    )


def _parse_term(term: str, source: str) -> tuple[Comparator, ...]:
    match = _TERM_REGEX.match(term)
    if match is None:
        raise InvalidConstraint(f"Invalid term {term!r} in constraint {source!r}")

    op = match.group("op") or ""
    text = match.group("version")
    parts, pre = _parse_partial(text, source)
    wildcard = _WILDCARD_REGEX.match(text) is not None

    if op == "^":
        return _caret(parts, pre) if parts else ()
    if op == "~":
        return _tilde(parts, pre) if parts else ()
    if wildcard:
        if op not in ("", "=", "=="):
            raise InvalidConstraint(f"Wildcard {text!r} cannot follow {op!r} in {source!r}")
        return _wildcard(parts)
    if op in ("", "=="):
        op = "="
    return (Comparator(op, _padded(parts, pre)),)


def _parse_hyphen(low: str, high: str, source: str) -> tuple[Comparator, ...]:
    low_parts, low_pre = _parse_partial(low, source)
    high_parts, high_pre = _parse_partial(high, source)
    bounds = [Comparator(">=", _padded(low_parts, low_pre))]
    if len(high_parts) == 3:
        bounds.append(Comparator("<=", _padded(high_parts, high_pre)))
    elif high_parts:
        bounds.append(_below(high_parts, len(high_parts) - 1))
    return tuple(bounds)


def _parse_group(group: str, source: str) -> tuple[Comparator, ...]:
    hyphen = _HYPHEN_REGEX.match(group)
    if hyphen is not None:
        return _parse_hyphen(hyphen.group("low"), hyphen.group("high"), source)

    group = _OPERATOR_SPACE_REGEX.sub(r"\1", group)
    comparators: list[Comparator] = []
    for term in _AND_REGEX.split(group):
        if term:
            comparators.extend(_parse_term(term, source))
    return tuple(comparators)


@lru_cache(maxsize=1024)
def parse_constraint(text: str) -> Constraint:
    """Parse a constraint string.

    Raises
    ------
    InvalidConstraint
        On any syntax error, including an empty ``||`` alternative.
    """
    source = text.strip()
    if source in ("", "*"):
        return Constraint(text=source or "*", alternatives=((),))

    groups = _OR_REGEX.split(source)
    if any(not g.strip() for g in groups):
        raise InvalidConstraint(f"Empty alternative in constraint {source!r}")

    return Constraint(
        text=source,
        alternatives=tuple(_parse_group(g.strip(), source) for g in groups),
    )


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------
def satisfies(
    version: SemanticVersion | str,
    constraint: Constraint | str,
) -> bool:
    """True if *version* meets *constraint*.

    String versions go through :func:`parse_version`, so unparseable input
    is checked as ``0.0.0``.
    """
    if isinstance(version, str):
        version = parse_version(version)
    if isinstance(constraint, str):
        constraint = parse_constraint(constraint)
    return constraint.matches(version)


def satisfied_by(
    versions: Iterable[SemanticVersion | str],
    constraint: Constraint | str,
) -> list[SemanticVersion | str]:
    """Items of *versions* that meet *constraint*, in their original order."""
    if isinstance(constraint, str):
        constraint = parse_constraint(constraint)
    return [v for v in versions if satisfies(v, constraint)]
