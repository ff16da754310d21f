"""
forge.engine.cleaning — Version string normalisation
======================================================

Mod authors and the GitHub release feed produce version strings in every
imaginable shape (``"v1.2 (beta)"``, ``"SPT 3.9.5 - 31337"``, ``"3.9"``).
These helpers coerce them into something :func:`parse_version` accepts.
"""

from __future__ import annotations

import re

from forge.constants import slugify
from forge.engine.version import SemanticVersion, parse_version_strict
from forge.errors import InvalidVersionNumber

__all__ = [
    "clean_mod_import",
    "clean_spt_import",
    "extract_spt_version_sections",
    "guess_semantic_constraint",
]

_MOD_VERSION_REGEX = re.compile(
    r"^(?P<pre>.*?)(?P<semver>\d+\.*\d*\.*\d*)(?P<post>.*)$", re.DOTALL
)
_SPT_TAG_REGEX = re.compile(r"^SPT\s+(\d+\.\d+\.\d+).*", re.DOTALL)
_SPT_SECTIONS_REGEX = re.compile(
    r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([a-zA-Z0-9]+))?$"
)
_VERSION_IN_TEXT_REGEX = re.compile(r"\b\d+\.\d+(?:\.\d+)?\b")
_TWO_PART_REGEX = re.compile(r"^\d+\.\d+$")

_METADATA_TRIM = "()[]{}- \t"


def clean_mod_import(raw: str | int) -> str:
    """Normalise a user supplied mod version into ``MAJOR.MINOR.PATCH[+meta]``.

    The first numeric run is taken as the version and padded to three
    parts without leading zeros.  Any surrounding text is slugged into
    build metadata.  Returns ``"0.0.0"`` when no digits are present.

    >>> clean_mod_import("v1.02 (beta)")
    '1.2.0+beta'
    """
    text = str(raw).strip().lstrip("v.").strip()

    match = _MOD_VERSION_REGEX.match(text)
    if match is None:
        return "0.0.0"

    segments = [s for s in match.group("semver").split(".") if s][:3]
    segments += ["0"] * (3 - len(segments))
    version = ".".join(str(int(s)) for s in segments)

    metadata = slugify((match.group("pre") + match.group("post")).strip(_METADATA_TRIM))
    if metadata:
        return f"{version}+{metadata}"
    return version


def clean_spt_import(tag: str) -> SemanticVersion:
    """Parse a GitHub SPT release tag such as ``"SPT 3.9.5 - 1234"``.

    Raises
    ------
    InvalidVersionNumber
        If nothing version-like remains after cleaning.
    """
    cleaned = _SPT_TAG_REGEX.sub(r"\1", tag.strip())
    return parse_version_strict(cleaned)


def guess_semantic_constraint(raw: str | int, append_any_patch: bool = True) -> str:
    """Best-effort constraint from free text (e.g. an imported SPT tag).

    The last ``N.N`` or ``N.N.N`` in *raw* wins.  Two-part versions become
    ``~N.N.0`` when *append_any_patch* is set.  This is a guess; prefer an
    explicit constraint whenever one is available.
    """
    found = _VERSION_IN_TEXT_REGEX.findall(str(raw))
    version = found[-1] if found else "0.0.0"

    if append_any_patch and _TWO_PART_REGEX.match(version):
        return f"~{version}.0"
    return version


def extract_spt_version_sections(text: str) -> dict[str, int | str]:
    """Split an SPT version string into major/minor/patch/labels.

    Missing minor/patch default to 0.  Only a single alphanumeric
    pre-release label is accepted.
    """
    match = _SPT_SECTIONS_REGEX.match(text.strip())
    if match is None:
        raise InvalidVersionNumber(f"Invalid SPT version number: {text!r}")

    major, minor, patch, labels = match.groups()
    return {
        "major": int(major),
        "minor": int(minor or 0),
        "patch": int(patch or 0),
        "labels": labels or "",
    }
