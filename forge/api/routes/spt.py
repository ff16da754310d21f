"""
forge.api.routes.spt — SPT releases
=====================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from forge.api.deps import get_session
from forge.api.serializers import spt_version_dict
from forge.services import spt_service

router = APIRouter(prefix="/spt", tags=["spt"])


@router.get("/versions")
def list_spt_versions(
    latest_minor_only: bool = Query(False),
    session: Session = Depends(get_session),
):
    """SPT releases, newest first (optionally only the newest minor line)."""
    if latest_minor_only:
        rows = spt_service.latest_minor_versions(session)
    else:
        rows = spt_service.spt_versions(session)
    return {"versions": [spt_version_dict(r) for r in rows]}


@router.get("/versions/latest")
def get_latest_spt_version(session: Session = Depends(get_session)):
    latest = spt_service.latest_spt_version(session)
    if latest is None:
        raise HTTPException(404, "No SPT versions synced yet")
    return spt_version_dict(latest)


@router.get("/versions/last-three-minors")
def list_last_three_minor_versions(session: Session = Depends(get_session)):
    """Releases of the three newest ``MAJOR.MINOR`` lines, newest first."""
    lines = spt_service.last_three_minor_versions(session)
    rows = spt_service.versions_for_last_three_minors(session)
    return {
        "minor_versions": [f"{major}.{minor}" for major, minor in lines],
        "versions": [spt_version_dict(r) for r in rows],
    }
