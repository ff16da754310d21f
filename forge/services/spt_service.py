"""
forge.services.spt_service — SPT release sync & compatibility
===============================================================

SPT (the game build mods target) publishes its releases on GitHub.  This
service mirrors them into ``spt_versions``, colors each release relative
to the newest one, and resolves a mod version's ``spt_version_constraint``
against the mirrored releases.

A ``0.0.0`` placeholder release always exists so mod versions whose
constraint matches nothing can still be attached to *something*.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from sqlalchemy import Engine, and_, func, or_, select
from sqlalchemy.orm import Session

from forge.database.engine import get_session
from forge.database.models import (
    Mod,
    ModVersion,
    SptVersion,
    SptVersionColor,
    mod_version_spt_version,
)
from forge.engine.cleaning import clean_spt_import
from forge.engine.constraints import parse_constraint
from forge.engine.version import ZERO_VERSION, SemanticVersion, latest
from forge.errors import InvalidVersionNumber

logger = logging.getLogger(__name__)

PLACEHOLDER_VERSION = "0.0.0"


# ---------------------------------------------------------------------------
# GitHub release feed
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GitHubRelease:
    """The subset of a GitHub release payload the sync cares about."""

    tag_name: str
    html_url: str = ""
    draft: bool = False
    prerelease: bool = False
    published_at: datetime | None = None

    @classmethod
    def from_dict(cls, record: dict) -> GitHubRelease:
        published = record.get("published_at")
        return cls(
            tag_name=str(record.get("tag_name") or ""),
            html_url=str(record.get("html_url") or ""),
            draft=bool(record.get("draft")),
            prerelease=bool(record.get("prerelease")),
            published_at=(
                datetime.fromisoformat(published.replace("Z", "+00:00")) if published else None
            ),
        )


def _request_headers(user_agent: str, token: str | None) -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json", "User-Agent": user_agent}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def fetch_github_releases(
    client: httpx.Client,
    url: str,
    *,
    user_agent: str = "the-forge",
    token: str | None = None,
) -> list[GitHubRelease]:
    """GET *url* and parse the release list.

    Raises
    ------
    httpx.HTTPStatusError
        On any non-2xx response.
    """
    response = client.get(url, headers=_request_headers(user_agent, token))
    response.raise_for_status()
    return [GitHubRelease.from_dict(r) for r in response.json()]


async def fetch_github_releases_async(
    client: httpx.AsyncClient,
    url: str,
    *,
    user_agent: str = "the-forge",
    token: str | None = None,
) -> list[GitHubRelease]:
    """Async twin of :func:`fetch_github_releases`."""
    response = await client.get(url, headers=_request_headers(user_agent, token))
    response.raise_for_status()
    return [GitHubRelease.from_dict(r) for r in response.json()]


# ---------------------------------------------------------------------------
# Coloring
# ---------------------------------------------------------------------------
def detect_spt_version_color(
    version: SemanticVersion, newest: SemanticVersion | None
) -> SptVersionColor:
    """Green for the newest minor line, red for anything older, gray for unknown."""
    if newest is None or version == ZERO_VERSION:
        return SptVersionColor.UNKNOWN
    if version.major != newest.major or version.minor != newest.minor:
        return SptVersionColor.OUTDATED
    return SptVersionColor.CURRENT


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------
def _clean_releases(releases: list[GitHubRelease]) -> list[tuple[GitHubRelease, SemanticVersion]]:
    cleaned = []
    for release in releases:
        if release.draft or release.prerelease:
            continue
        try:
            cleaned.append((release, clean_spt_import(release.tag_name)))
        except InvalidVersionNumber as exc:
            logger.warning("Skipping GitHub release %r: %s", release.tag_name, exc)
    return cleaned


def sync_spt_versions(session: Session, releases: list[GitHubRelease]) -> int:
    """Insert new SPT releases and refresh existing ones.

    Drafts, GitHub pre-releases and tags that do not clean up into a
    semantic version are skipped.  New rows are published as of their
    GitHub release date; the publish date of existing rows is left alone.
    Colors of *all* stored releases are recomputed against the newest one.
    Returns the number of new rows.
    """
    cleaned = _clean_releases(releases)

    existing = {row.version: row for row in session.scalars(select(SptVersion)).all()}
    if PLACEHOLDER_VERSION not in existing:
        placeholder = SptVersion(version=PLACEHOLDER_VERSION)
        session.add(placeholder)
        existing[PLACEHOLDER_VERSION] = placeholder

    inserted = 0
    for release, version in cleaned:
        key = str(version)
        row = existing.get(key)
        if row is None:
            published = release.published_at or datetime.now(UTC)
            row = SptVersion(version=key, created_at=published, publish_date=published)
            session.add(row)
            existing[key] = row
            inserted += 1
        else:
            # Re-derive components in case the parsing rules changed
            row.version = key
        row.link = release.html_url

    newest = latest(
        (row.semantic_version for row in existing.values() if row.version != PLACEHOLDER_VERSION)
    )
    for row in existing.values():
        row.color_class = detect_spt_version_color(row.semantic_version, newest).value

    session.flush()
    logger.info(
        "SPT sync: %d releases processed, %d new, newest %s",
        len(cleaned), inserted, newest or "none",
    )
    return inserted


def sync_spt_versions_from_releases(engine: Engine, releases: list[GitHubRelease]) -> int:
    """Run :func:`sync_spt_versions` in its own committed session."""
    with get_session(engine) as session:
        return sync_spt_versions(session, releases)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def _listing(*, include_placeholder: bool = False, include_unpublished: bool = False):
    query = select(SptVersion).order_by(*SptVersion.version_ordering())
    if not include_placeholder:
        query = query.where(SptVersion.version != PLACEHOLDER_VERSION)
    if not include_unpublished:
        query = query.where(SptVersion.published())
    return query


def spt_versions(
    session: Session,
    *,
    include_placeholder: bool = False,
    include_unpublished: bool = False,
) -> list[SptVersion]:
    """SPT releases, newest first.  Unpublished releases are hidden by default."""
    query = _listing(
        include_placeholder=include_placeholder, include_unpublished=include_unpublished
    )
    return list(session.scalars(query).all())


def latest_spt_version(session: Session, *, include_unpublished: bool = False) -> SptVersion | None:
    return session.scalar(_listing(include_unpublished=include_unpublished).limit(1))


def latest_minor_versions(session: Session, *, include_unpublished: bool = False) -> list[SptVersion]:
    """Every patch release of the newest ``MAJOR.MINOR`` line, newest first."""
    newest = latest_spt_version(session, include_unpublished=include_unpublished)
    if newest is None:
        return []
    return list(session.scalars(
        _listing(include_unpublished=include_unpublished).where(
            SptVersion.version_major == newest.version_major,
            SptVersion.version_minor == newest.version_minor,
        )
    ).all())


def last_three_minor_versions(
    session: Session, *, include_unpublished: bool = False
) -> list[tuple[int, int]]:
    """The three newest ``(major, minor)`` lines, newest first."""
    query = (
        select(SptVersion.version_major, SptVersion.version_minor)
        .where(SptVersion.version != PLACEHOLDER_VERSION)
        .group_by(SptVersion.version_major, SptVersion.version_minor)
        .order_by(SptVersion.version_major.desc(), SptVersion.version_minor.desc())
        .limit(3)
    )
    if not include_unpublished:
        query = query.where(SptVersion.published())
    return [(major, minor) for major, minor in session.execute(query).all()]


def versions_for_last_three_minors(
    session: Session, *, include_unpublished: bool = False
) -> list[SptVersion]:
    """Every release belonging to :func:`last_three_minor_versions`, newest first."""
    lines = last_three_minor_versions(session, include_unpublished=include_unpublished)
    if not lines:
        return []
    return list(session.scalars(
        _listing(include_unpublished=include_unpublished).where(or_(*(
            and_(SptVersion.version_major == major, SptVersion.version_minor == minor)
            for major, minor in lines
        )))
    ).all())


# ---------------------------------------------------------------------------
# Mod version ↔ SPT compatibility
# ---------------------------------------------------------------------------
def resolve_spt_versions(session: Session, mod_version: ModVersion) -> list[SptVersion]:
    """Attach the SPT releases matching ``mod_version.spt_version_constraint``.

    A blank constraint, or one that matches no release, attaches the
    ``0.0.0`` placeholder (when it exists).  Returns the attached releases,
    newest first.

    Raises
    ------
    InvalidConstraint
        If the stored constraint cannot be parsed.
    """
    text = mod_version.spt_version_constraint.strip()
    releases = spt_versions(session, include_placeholder=True, include_unpublished=True)

    matching: list[SptVersion] = []
    if text:
        constraint = parse_constraint(text)
        matching = [
            r for r in releases
            if r.version != PLACEHOLDER_VERSION and constraint.matches(r.semantic_version)
        ]
    if not matching:
        matching = [r for r in releases if r.version == PLACEHOLDER_VERSION]

    mod_version.spt_versions = matching
    session.flush()
    return matching


def latest_spt_version_for(mod_version: ModVersion) -> SptVersion | None:
    """Newest SPT release a mod version is attached to."""
    return latest(mod_version.spt_versions, key=lambda r: r.semantic_version)


def refresh_mod_counts(session: Session) -> None:
    """Recount publicly visible mods per SPT release."""
    counts = dict(session.execute(
        select(
            mod_version_spt_version.c.spt_version_id,
            func.count(func.distinct(ModVersion.mod_id)),
        )
        .join(ModVersion, ModVersion.id == mod_version_spt_version.c.mod_version_id)
        .join(Mod, Mod.id == ModVersion.mod_id)
        .where(ModVersion.publicly_visible(), Mod.publicly_visible())
        .group_by(mod_version_spt_version.c.spt_version_id)
    ).all())

    for row in session.scalars(select(SptVersion)).all():
        row.mod_count = counts.get(row.id, 0)
    session.flush()
