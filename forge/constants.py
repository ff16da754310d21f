"""
forge.constants — Shared Constants & Helpers
==============================================

Single source of truth for upstream URLs and small text helpers.
Import from here instead of duplicating in services and routes.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Upstream sources
# ---------------------------------------------------------------------------
GITHUB_SPT_RELEASES_URL = "https://api.github.com/repos/sp-tarkov/build/releases"


# ---------------------------------------------------------------------------
# Text processing helpers
# ---------------------------------------------------------------------------
_SLUG_STRIP_REGEX = re.compile(r"[^a-z0-9\s-]", re.ASCII)
_SLUG_SEPARATOR_REGEX = re.compile(r"[\s-]+")

def slugify(text: str) -> str:
    """Lower-case, hyphen-separated ASCII slug.

    Punctuation is dropped rather than turned into a separator, so
    ``"Beta.1 (Hotfix)"`` becomes ``"beta1-hotfix"``.
    """
    text = text.lower().replace("_", "-")
    text = _SLUG_STRIP_REGEX.sub("", text)
    return _SLUG_SEPARATOR_REGEX.sub("-", text).strip("-")
