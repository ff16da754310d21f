"""
forge.api.routes.versions — Stateless version utilities
=========================================================

Lets front-ends and mod managers order and match version strings with
exactly the rules the Forge itself uses.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from forge.api.serializers import semantic_version_dict
from forge.engine.constraints import satisfies
from forge.engine.version import compare, parse_version, sort_versions
from forge.errors import InvalidConstraint

router = APIRouter(prefix="/versions", tags=["versions"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class SortRequest(BaseModel):
    versions: list[Annotated[str, Field(max_length=100)]] = Field(..., max_length=1000)
    descending: bool = True


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.get("/parse")
def parse(version: str = Query(..., max_length=100)):
    """Parsed components; unparseable input comes back as 0.0.0."""
    return semantic_version_dict(parse_version(version))


@router.get("/compare")
def compare_versions(
    a: str = Query(..., max_length=100),
    b: str = Query(..., max_length=100),
):
    """``-1`` if *a* is older than *b*, ``0`` if equal, ``1`` if newer."""
    return {"result": int(compare(parse_version(a), parse_version(b)))}


@router.post("/sort")
def sort(body: SortRequest):
    """Sort version strings; equal versions keep their submitted order."""
    ordered = sort_versions(body.versions, key=parse_version, descending=body.descending)
    return {"versions": ordered}


@router.get("/satisfies")
def check_constraint(
    version: str = Query(..., max_length=100),
    constraint: str = Query(..., max_length=200),
):
    try:
        result = satisfies(version, constraint)
    except InvalidConstraint as exc:
        raise HTTPException(422, str(exc))
    return {"version": version, "constraint": constraint, "satisfied": result}
