"""
forge.api.routes.mods — Mod versions & dependencies
=====================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from forge.api.deps import get_session
from forge.api.serializers import dependency_node_dict, mod_dict, mod_version_dict
from forge.database.models import ModVersion
from forge.errors import InvalidConstraint, NotFound
from forge.services import dependency_service, version_service

router = APIRouter(tags=["mods"])


# ---------------------------------------------------------------------------
# GET /mods/{mod_id}/versions
# ---------------------------------------------------------------------------
@router.get("/mods/{mod_id}/versions")
def list_mod_versions(
    mod_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Published versions of a mod, newest first."""
    try:
        mod = version_service.get_mod(session, mod_id)
    except NotFound:
        raise HTTPException(404, "Mod not found")

    offset = (page - 1) * page_size
    versions = version_service.mod_versions(session, mod.id, limit=page_size, offset=offset)
    return {
        "mod": mod_dict(mod),
        "total": version_service.count_mod_versions(session, mod.id),
        "page": page,
        "page_size": page_size,
        "versions": [mod_version_dict(v) for v in versions],
    }


# ---------------------------------------------------------------------------
# GET /mods/{mod_id}/versions/latest
# ---------------------------------------------------------------------------
@router.get("/mods/{mod_id}/versions/latest")
def get_latest_mod_version(mod_id: int, session: Session = Depends(get_session)):
    try:
        mod = version_service.get_mod(session, mod_id)
    except NotFound:
        raise HTTPException(404, "Mod not found")

    latest = version_service.latest_mod_version(session, mod.id)
    if latest is None:
        raise HTTPException(404, "Mod has no published versions")
    return mod_version_dict(latest)


# ---------------------------------------------------------------------------
# GET /mod-versions/{mod_version_id}/dependencies
# ---------------------------------------------------------------------------
@router.get("/mod-versions/{mod_version_id}/dependencies")
def get_dependency_tree(mod_version_id: int, session: Session = Depends(get_session)):
    """Recursive dependency tree following the newest satisfying versions."""
    mod_version = session.get(ModVersion, mod_version_id)
    if mod_version is None or not mod_version.is_publicly_visible:
        raise HTTPException(404, "Mod version not found")

    tree = dependency_service.build_dependency_tree(session, mod_version.id)
    return {
        "mod_version": mod_version_dict(mod_version),
        "dependencies": [dependency_node_dict(node) for node in tree],
    }


# ---------------------------------------------------------------------------
# GET /mods/{mod_id}/versions/satisfying?constraint=^1.0&spt_version=3.9.5
# ---------------------------------------------------------------------------
@router.get("/mods/{mod_id}/versions/satisfying")
def get_satisfying_mod_version(
    mod_id: int,
    constraint: str = Query(..., max_length=100),
    spt_version: str = Query(..., min_length=1, max_length=50),
    session: Session = Depends(get_session),
):
    """Newest version meeting *constraint* that supports the given SPT release."""
    try:
        mod = version_service.get_mod(session, mod_id)
    except NotFound:
        raise HTTPException(404, "Mod not found")

    try:
        found = dependency_service.find_satisfying_version(
            session, mod.id, constraint, spt_version.strip()
        )
    except InvalidConstraint as exc:
        raise HTTPException(422, str(exc))
    if found is None:
        raise HTTPException(404, "No version satisfies the constraint for this SPT version")
    return mod_version_dict(found)


# ---------------------------------------------------------------------------
# GET /dependencies?mods=guid:1.0.0,12:2.0.0&addons=extra:1.0.0
# ---------------------------------------------------------------------------
@router.get("/dependencies")
def get_dependencies_for_pairs(
    mods: str = Query("", max_length=2000),
    addons: str = Query("", max_length=2000),
    session: Session = Depends(get_session),
):
    """Merged dependency trees for several ``identifier:version`` pairs.

    A mod required by more than one requested version appears once, at the
    newest version that satisfies every constraint on it, or once per
    competing version with ``conflict: true``.
    """
    if not mods.strip() and not addons.strip():
        raise HTTPException(400, "You must provide the 'mods' or 'addons' parameter.")

    mod_pairs = dependency_service.parse_mod_version_pairs(mods)
    addon_pairs = dependency_service.parse_addon_version_pairs(addons)
    if not mod_pairs and not addon_pairs:
        raise HTTPException(
            400,
            "Invalid format. Expected 'identifier:version,identifier:version' where "
            "identifier is a numeric id, a mod GUID or an add-on slug.",
        )

    mod_version_ids = dependency_service.resolve_mod_version_ids(session, mod_pairs)
    addon_version_ids = dependency_service.resolve_addon_version_ids(session, addon_pairs)
    nodes = dependency_service.resolve_shared_dependencies(
        session, mod_version_ids, addon_version_ids
    )
    return {
        "requested": len(mod_pairs) + len(addon_pairs),
        "resolved": len(mod_version_ids) + len(addon_version_ids),
        "dependencies": [dependency_node_dict(node) for node in nodes],
    }
