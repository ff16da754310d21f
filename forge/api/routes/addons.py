"""
forge.api.routes.addons — Add-on versions & compatibility
===========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from forge.api.deps import get_session
from forge.api.serializers import addon_version_dict, dependency_node_dict, mod_version_dict
from forge.errors import NotFound
from forge.services import dependency_service, version_service

router = APIRouter(tags=["addons"])


@router.get("/addons/{addon_id}/versions")
def list_addon_versions(
    addon_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Published versions of an add-on, newest first."""
    try:
        addon = version_service.get_addon(session, addon_id)
    except NotFound:
        raise HTTPException(404, "Addon not found")

    offset = (page - 1) * page_size
    versions = version_service.addon_versions(session, addon.id, limit=page_size, offset=offset)
    return {
        "addon_id": addon.id,
        "page": page,
        "page_size": page_size,
        "versions": [addon_version_dict(v) for v in versions],
    }


@router.get("/addons/{addon_id}/compatible-mod-versions")
def list_addon_compatible_mod_versions(addon_id: int, session: Session = Depends(get_session)):
    """Every parent mod version supported by any version of the add-on."""
    try:
        addon = version_service.get_addon(session, addon_id)
    except NotFound:
        raise HTTPException(404, "Addon not found")

    return {
        "addon_id": addon.id,
        "mod_versions": [
            mod_version_dict(mv) for mv in version_service.all_compatible_mod_versions(addon)
        ],
    }


@router.get("/addon-versions/{addon_version_id}/compatible-mod-versions")
def list_compatible_mod_versions(addon_version_id: int, session: Session = Depends(get_session)):
    """Parent mod versions this add-on version supports, newest first."""
    try:
        addon_version = version_service.get_addon_version(session, addon_version_id)
    except NotFound:
        raise HTTPException(404, "Addon version not found")

    return {
        "addon_version": addon_version_dict(addon_version),
        "mod_versions": [
            mod_version_dict(mv)
            for mv in version_service.sorted_compatible_mod_versions(addon_version)
        ],
    }


@router.get("/addon-versions/{addon_version_id}/dependencies")
def get_addon_dependency_tree(addon_version_id: int, session: Session = Depends(get_session)):
    """Recursive dependency tree of an add-on version."""
    try:
        addon_version = version_service.get_addon_version(session, addon_version_id)
    except NotFound:
        raise HTTPException(404, "Addon version not found")

    tree = dependency_service.build_addon_dependency_tree(session, addon_version.id)
    return {
        "addon_version": addon_version_dict(addon_version),
        "dependencies": [dependency_node_dict(node) for node in tree],
    }
