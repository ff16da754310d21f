"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from forge.database.models import Addon, AddonVersion, Base, Mod, ModVersion

PAST = datetime.now(UTC) - timedelta(days=1)
FUTURE = datetime.now(UTC) + timedelta(days=30)


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Forge tables.

    Uses StaticPool so the TestClient's worker thread sees the same
    in-memory database as the test body.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def client(db_engine: Engine):
    """FastAPI TestClient wired to the in-memory database."""
    from fastapi.testclient import TestClient

    from forge.api.deps import get_session
    from forge.api.main import app

    def _session_override():
        with Session(db_engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def make_mod(session: Session, guid: str = "com.example.mod", **kwargs) -> Mod:
    kwargs.setdefault("name", guid.rsplit(".", 1)[-1].title())
    kwargs.setdefault("slug", guid.rsplit(".", 1)[-1])
    kwargs.setdefault("published_at", PAST)
    mod = Mod(guid=guid, **kwargs)
    session.add(mod)
    session.flush()
    return mod


def make_mod_version(session: Session, mod: Mod, version: str, **kwargs) -> ModVersion:
    kwargs.setdefault("published_at", PAST)
    mod_version = ModVersion(mod_id=mod.id, version=version, **kwargs)
    session.add(mod_version)
    session.flush()
    return mod_version


def make_addon(session: Session, mod: Mod, slug: str = "extra", **kwargs) -> Addon:
    kwargs.setdefault("name", slug.title())
    kwargs.setdefault("published_at", PAST)
    addon = Addon(mod_id=mod.id, slug=slug, **kwargs)
    session.add(addon)
    session.flush()
    return addon


def make_addon_version(session: Session, addon: Addon, version: str, **kwargs) -> AddonVersion:
    kwargs.setdefault("published_at", PAST)
    addon_version = AddonVersion(addon_id=addon.id, version=version, **kwargs)
    session.add(addon_version)
    session.flush()
    return addon_version
