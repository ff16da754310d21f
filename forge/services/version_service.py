"""
forge.services.version_service — Ordered version listings
===========================================================

Every "latest first" listing in the Forge goes through here.  Database
queries use :meth:`VersionColumnsMixin.version_ordering`; collections that
are already loaded are sorted in memory with
:func:`forge.engine.version.sort_versions`.  Both encode the same rule.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from forge.database.models import Addon, AddonVersion, Mod, ModVersion
from forge.engine.constraints import parse_constraint
from forge.engine.version import SemanticVersion, VersionedEntity, sort_versions
from forge.errors import NotFound

logger = logging.getLogger(__name__)


def _semantic(row: VersionedEntity) -> SemanticVersion:
    return row.semantic_version


def sort_latest_first(rows):
    """Sort loaded versioned rows newest first; equal versions by id descending."""
    by_id = sorted(rows, key=lambda r: r.id or 0, reverse=True)
    return sort_versions(by_id, key=_semantic, descending=True)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def get_mod(session: Session, mod_id: int, *, include_unpublished: bool = False) -> Mod:
    query = select(Mod).where(Mod.id == mod_id)
    if not include_unpublished:
        query = query.where(Mod.publicly_visible())
    mod = session.scalar(query)
    if mod is None:
        raise NotFound("mod", mod_id)
    return mod


def get_addon(session: Session, addon_id: int, *, include_unpublished: bool = False) -> Addon:
    query = select(Addon).where(Addon.id == addon_id)
    if not include_unpublished:
        query = query.where(Addon.publicly_visible())
    addon = session.scalar(query)
    if addon is None:
        raise NotFound("addon", addon_id)
    return addon


def get_addon_version(
    session: Session, addon_version_id: int, *, include_unpublished: bool = False
) -> AddonVersion:
    query = select(AddonVersion).where(AddonVersion.id == addon_version_id)
    if not include_unpublished:
        query = query.where(AddonVersion.publicly_visible())
    addon_version = session.scalar(query)
    if addon_version is None:
        raise NotFound("addon version", addon_version_id)
    return addon_version


# ---------------------------------------------------------------------------
# Mod versions
# ---------------------------------------------------------------------------
def _mod_versions_query(mod_id: int, include_unpublished: bool):
    query = select(ModVersion).where(ModVersion.mod_id == mod_id)
    if not include_unpublished:
        query = query.where(ModVersion.publicly_visible())
    return query


def mod_versions(
    session: Session,
    mod_id: int,
    *,
    include_unpublished: bool = False,
    limit: int | None = None,
    offset: int = 0,
) -> list[ModVersion]:
    """Versions of *mod_id*, newest first."""
    query = (
        _mod_versions_query(mod_id, include_unpublished)
        .order_by(*ModVersion.version_ordering())
        .offset(offset)
    )
    if limit is not None:
        query = query.limit(limit)
    return list(session.scalars(query).all())


def count_mod_versions(session: Session, mod_id: int, *, include_unpublished: bool = False) -> int:
    subquery = _mod_versions_query(mod_id, include_unpublished).subquery()
    return session.scalar(select(func.count()).select_from(subquery)) or 0


def latest_mod_version(
    session: Session, mod_id: int, *, include_unpublished: bool = False
) -> ModVersion | None:
    versions = mod_versions(session, mod_id, include_unpublished=include_unpublished, limit=1)
    return versions[0] if versions else None


# ---------------------------------------------------------------------------
# Add-on versions
# ---------------------------------------------------------------------------
def addon_versions(
    session: Session,
    addon_id: int,
    *,
    include_unpublished: bool = False,
    limit: int | None = None,
    offset: int = 0,
) -> list[AddonVersion]:
    """Versions of *addon_id*, newest first."""
    query = select(AddonVersion).where(AddonVersion.addon_id == addon_id)
    if not include_unpublished:
        query = query.where(AddonVersion.publicly_visible())
    query = query.order_by(*AddonVersion.version_ordering()).offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return list(session.scalars(query).all())


def latest_addon_version(
    session: Session, addon_id: int, *, include_unpublished: bool = False
) -> AddonVersion | None:
    versions = addon_versions(session, addon_id, include_unpublished=include_unpublished, limit=1)
    return versions[0] if versions else None


# ---------------------------------------------------------------------------
# Add-on ↔ mod version compatibility
# ---------------------------------------------------------------------------
def sorted_compatible_mod_versions(addon_version: AddonVersion) -> list[ModVersion]:
    """Mod versions this add-on version supports, newest first."""
    return sort_latest_first(addon_version.compatible_mod_versions)


def all_compatible_mod_versions(addon: Addon) -> list[ModVersion]:
    """Union of compatible mod versions across every version of *addon*."""
    seen: dict[int, ModVersion] = {}
    for version in addon.versions:
        for mod_version in version.compatible_mod_versions:
            seen.setdefault(mod_version.id, mod_version)
    return sort_latest_first(seen.values())


def sync_compatible_mod_versions(session: Session, addon_version: AddonVersion) -> list[ModVersion]:
    """Re-resolve ``mod_version_constraint`` against the parent mod.

    All versions of the parent mod are considered, published or not, so
    that a later publish does not require a re-sync.  An empty constraint
    clears the compatibility list.

    Raises
    ------
    InvalidConstraint
        If the stored constraint cannot be parsed.
    """
    text = addon_version.mod_version_constraint.strip()
    if not text:
        addon_version.compatible_mod_versions = []
        session.flush()
        return []

    constraint = parse_constraint(text)
    parent_mod_id = addon_version.addon.mod_id
    candidates = session.scalars(
        select(ModVersion).where(ModVersion.mod_id == parent_mod_id)
    ).all()
    matching = [mv for mv in candidates if constraint.matches(mv.semantic_version)]

    addon_version.compatible_mod_versions = matching
    session.flush()
    logger.info(
        "Addon version %s: %d of %d mod versions match %r",
        addon_version.id, len(matching), len(candidates), text,
    )
    return sort_latest_first(matching)
