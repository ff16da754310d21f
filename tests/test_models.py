"""
tests/test_models.py — ORM Model Tests
========================================

Version column derivation, SQL ordering, and publish visibility, using an
in-memory SQLite database.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateTable

from conftest import FUTURE, PAST, make_mod, make_mod_version
from forge.database.models import AddonVersion, Dependency, ModVersion, SptVersion
from forge.engine.version import SemanticVersion, sort_versions
from forge.services.version_service import sort_latest_first


# ===========================================================================
# Version column derivation
# ===========================================================================
class TestVersionColumns:
    def test_components_derived_on_assignment(self):
        mv = ModVersion(mod_id=1, version="v1.2.3-beta.1+build.7")
        assert mv.version == "1.2.3-beta.1+build.7"
        assert (mv.version_major, mv.version_minor, mv.version_patch) == (1, 2, 3)
        assert mv.version_labels == "beta.1"
        assert mv.semantic_version == SemanticVersion(1, 2, 3, "beta.1")

    def test_reassignment_rederives(self):
        mv = ModVersion(mod_id=1, version="1.0.0-rc1")
        mv.version = "2.1.0"
        assert mv.semantic_version == SemanticVersion(2, 1, 0)
        assert mv.version_labels == ""

    def test_single_prefix_stripped(self):
        mv = ModVersion(mod_id=1, version="vVv1.0.0")
        assert mv.version == "Vv1.0.0"
        assert mv.semantic_version == SemanticVersion(0, 0, 0)

    def test_unparseable_kept_but_zeroed(self):
        sv = SptVersion(version="  latest ")
        assert sv.version == "latest"
        assert sv.semantic_version == SemanticVersion(0, 0, 0)

    def test_persisted_columns(self, db_session):
        mod = make_mod(db_session)
        mv = make_mod_version(db_session, mod, "3.4.5-alpha")
        db_session.expire(mv)
        assert mv.version_major == 3
        assert mv.version_labels == "alpha"


# ===========================================================================
# SQL ordering agrees with the in-memory comparator
# ===========================================================================
class TestVersionOrdering:
    VERSIONS = [
        "1.0.0-rc1", "0.9.0", "1.0.0", "1.0.0-beta", "1.10.0",
        "1.2.0", "1.0.0+b", "2.0.0-alpha", "garbage", "1.1.9",
    ]

    def _seed(self, session):
        mod = make_mod(session)
        for text in self.VERSIONS:
            make_mod_version(session, mod, text)
        return mod

    def test_descending_matches_sort_latest_first(self, db_session):
        mod = self._seed(db_session)
        from_sql = db_session.scalars(
            select(ModVersion)
            .where(ModVersion.mod_id == mod.id)
            .order_by(*ModVersion.version_ordering())
        ).all()
        assert [mv.id for mv in from_sql] == [mv.id for mv in sort_latest_first(from_sql[::-1])]

    def test_descending_fixture(self, db_session):
        mod = make_mod(db_session)
        for text in ["1.0.0-rc1", "1.0.0", "0.9.0", "1.0.0-beta"]:
            make_mod_version(db_session, mod, text)
        rows = db_session.scalars(
            select(ModVersion).order_by(*ModVersion.version_ordering())
        ).all()
        assert [mv.version for mv in rows] == ["1.0.0", "1.0.0-rc1", "1.0.0-beta", "0.9.0"]

    def test_ascending_matches_sort_versions(self, db_session):
        self._seed(db_session)
        rows = db_session.scalars(
            select(ModVersion).order_by(*ModVersion.version_ordering(descending=False))
        ).all()
        by_id = sorted(rows, key=lambda r: r.id)
        expected = sort_versions(by_id, key=lambda r: r.semantic_version)
        assert [r.id for r in rows] == [r.id for r in expected]

    def test_equal_versions_tie_break_on_id(self, db_session):
        mod = make_mod(db_session)
        first = make_mod_version(db_session, mod, "1.0.0+a")
        second = make_mod_version(db_session, mod, "1.0.0+b")
        rows = db_session.scalars(
            select(ModVersion).order_by(*ModVersion.version_ordering())
        ).all()
        assert [r.id for r in rows] == [second.id, first.id]


# ===========================================================================
# Publish visibility
# ===========================================================================
class TestVisibility:
    def test_sql_predicate(self, db_session):
        mod = make_mod(db_session)
        visible = make_mod_version(db_session, mod, "1.0.0")
        make_mod_version(db_session, mod, "1.1.0", published_at=None)
        make_mod_version(db_session, mod, "1.2.0", published_at=FUTURE)
        make_mod_version(db_session, mod, "1.3.0", disabled=True)

        rows = db_session.scalars(
            select(ModVersion).where(ModVersion.publicly_visible())
        ).all()
        assert [r.id for r in rows] == [visible.id]

    def test_property(self):
        assert ModVersion(version="1.0.0", published_at=PAST).is_publicly_visible
        assert not ModVersion(version="1.0.0", published_at=None).is_publicly_visible
        assert not ModVersion(version="1.0.0", published_at=FUTURE).is_publicly_visible
        assert not ModVersion(
            version="1.0.0", published_at=PAST, disabled=True
        ).is_publicly_visible

    def test_naive_datetime_treated_as_utc(self):
        naive_past = datetime.now(UTC).replace(tzinfo=None) - timedelta(hours=1)
        assert ModVersion(version="1.0.0", published_at=naive_past).is_publicly_visible

    def test_spt_version_publish_date(self, db_session):
        for version, publish_date in [("3.9.0", PAST), ("3.9.1", None), ("3.9.2", FUTURE)]:
            db_session.add(SptVersion(version=version, publish_date=publish_date))
        db_session.flush()

        rows = db_session.scalars(select(SptVersion).where(SptVersion.published())).all()
        assert [r.version for r in rows] == ["3.9.0"]
        assert [r.is_published for r in db_session.scalars(select(SptVersion).order_by(SptVersion.id))] == [
            True, False, False,
        ]


# ===========================================================================
# Schema
# ===========================================================================
class TestSchema:
    def test_labels_use_c_collation_on_postgresql(self):
        for table in (ModVersion.__table__, AddonVersion.__table__, SptVersion.__table__):
            ddl = str(CreateTable(table).compile(dialect=postgresql.dialect()))
            assert 'version_labels VARCHAR(100) COLLATE "C"' in ddl

    def test_labels_plain_on_sqlite(self, db_engine):
        ddl = str(CreateTable(ModVersion.__table__).compile(dialect=db_engine.dialect))
        assert "COLLATE" not in ddl

    def test_dependency_needs_exactly_one_owner(self, db_session):
        mod = make_mod(db_session)
        db_session.add(Dependency(dependent_mod_id=mod.id, constraint="*"))
        with pytest.raises(IntegrityError):
            db_session.flush()
