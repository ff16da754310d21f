"""
forge.api.serializers — ORM rows → JSON-ready dicts
=====================================================
"""

from __future__ import annotations

from datetime import datetime

from forge.database.models import AddonVersion, Mod, ModVersion, SptVersion
from forge.engine.version import SemanticVersion
from forge.services.dependency_service import DependencyNode


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def semantic_version_dict(v: SemanticVersion) -> dict:
    return {
        "version": str(v),
        "major": v.major,
        "minor": v.minor,
        "patch": v.patch,
        "pre_release": v.pre_release,
        "build": v.build,
    }


def _version_fields(row) -> dict:
    return {
        "id": row.id,
        "version": row.version,
        "version_major": row.version_major,
        "version_minor": row.version_minor,
        "version_patch": row.version_patch,
        "version_labels": row.version_labels,
    }


def mod_dict(m: Mod) -> dict:
    return {
        "id": m.id,
        "guid": m.guid,
        "name": m.name,
        "slug": m.slug,
    }


def mod_version_dict(mv: ModVersion) -> dict:
    return {
        **_version_fields(mv),
        "mod_id": mv.mod_id,
        "spt_version_constraint": mv.spt_version_constraint,
        "downloads": mv.downloads,
        "published_at": _iso(mv.published_at),
    }


def addon_version_dict(av: AddonVersion) -> dict:
    return {
        **_version_fields(av),
        "addon_id": av.addon_id,
        "mod_version_constraint": av.mod_version_constraint,
        "downloads": av.downloads,
        "published_at": _iso(av.published_at),
    }


def spt_version_dict(sv: SptVersion) -> dict:
    return {
        **_version_fields(sv),
        "link": sv.link,
        "publish_date": _iso(sv.publish_date),
        "color_class": sv.color_class,
        "mod_count": sv.mod_count,
    }


def dependency_node_dict(node: DependencyNode) -> dict:
    return {
        "mod": mod_dict(node.mod),
        "constraint": node.constraint,
        "latest_version": mod_version_dict(node.latest_version) if node.latest_version else None,
        "circular": node.circular,
        "conflict": node.conflict,
        "dependencies": [dependency_node_dict(child) for child in node.dependencies],
    }
