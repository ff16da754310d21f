"""
forge.errors — Exception Types
================================

Raised by the engine and service layers; the API layer maps them to HTTP
status codes.
"""

from __future__ import annotations


class ForgeError(Exception):
    """Base class for all Forge errors."""


class InvalidVersionNumber(ForgeError, ValueError):
    """A version string did not match the strict format expected."""


class InvalidConstraint(ForgeError, ValueError):
    """A version constraint string could not be parsed."""


class NotFound(ForgeError, LookupError):
    """A requested record does not exist (or is not publicly visible)."""

    def __init__(self, kind: str, ident: object) -> None:
        super().__init__(f"{kind} {ident!r} not found")
        self.kind = kind
        self.ident = ident
