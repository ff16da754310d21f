"""
forge.database.models — SQLAlchemy 2.0 Data Models
====================================================

Tables:
- mods                  — A mod listing (GUID identifies it across releases)
- mod_versions          — Releases of a mod, with parsed version components
- dependencies          — "this mod or add-on version needs mod X matching constraint C"
- resolved_dependencies — Concrete mod versions satisfying each dependency
- addons                — Optional extras published against a parent mod
- addon_versions        — Releases of an add-on
- addon_version_mod_version — Parent mod versions an add-on version supports
- spt_versions          — Releases of the game (SPT) itself
- mod_version_spt_version — SPT releases a mod version supports

Every versioned table carries ``version_major``, ``version_minor``,
``version_patch`` and ``version_labels`` columns, derived from ``version``
whenever it is assigned.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
    and_,
    case,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from forge.engine.version import SemanticVersion, parse_version, without_v_prefix

LABELS_TYPE = String(100).with_variant(String(100, collation="C"), "postgresql")


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Forge ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SptVersionColor(enum.StrEnum):
    """Badge color of an SPT release relative to the newest release."""
    CURRENT = "green"
    OUTDATED = "red"
    UNKNOWN = "gray"


# ---------------------------------------------------------------------------
# Version columns — shared by every versioned table
# ---------------------------------------------------------------------------
class VersionColumnsMixin:
    """Stores a version string plus its parsed components.

    Assigning ``version`` strips a leading ``v``/``V`` and re-derives the
    component columns.  Unparseable strings are kept verbatim but sort as
    ``0.0.0``.
    """

    version: Mapped[str] = mapped_column(String(50), nullable=False)
    version_major: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version_minor: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version_patch: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # C collation on PostgreSQL: labels sort in code-point order
    version_labels: Mapped[str] = mapped_column(
        LABELS_TYPE, default="", nullable=False
    )

    @validates("version")
    def _derive_version_columns(self, key: str, value: str) -> str:
        value = without_v_prefix(str(value))
        parsed = parse_version(value)
        self.version_major = parsed.major
        self.version_minor = parsed.minor
        self.version_patch = parsed.patch
        self.version_labels = parsed.pre_release
        return value

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion(
            self.version_major or 0,
            self.version_minor or 0,
            self.version_patch or 0,
            self.version_labels or "",
        )

    @classmethod
    def version_ordering(cls, descending: bool = True) -> list:
        """``ORDER BY`` clauses matching :func:`forge.engine.version.compare`.

        Final releases rank above pre-releases of the same triple; ties fall
        back to ``id`` in the same direction.
        """
        release_rank = case((cls.version_labels == "", 1), else_=0)
        columns = [
            cls.version_major,
            cls.version_minor,
            cls.version_patch,
            release_rank,
            cls.version_labels,
            cls.id,
        ]
        return [c.desc() if descending else c.asc() for c in columns]


def _in_past(moment: datetime | None) -> bool:
    """True for a set moment at or before now; naive values are read as UTC."""
    if moment is None:
        return False
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment <= datetime.now(UTC)


class PublishableMixin:
    """``published_at`` + ``disabled`` visibility flags."""

    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    disabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @classmethod
    def publicly_visible(cls):
        """SQL predicate: published in the past and not disabled."""
        return and_(
            cls.published_at.is_not(None),
            cls.published_at <= datetime.now(UTC),
            cls.disabled.is_(False),
        )

    @property
    def is_publicly_visible(self) -> bool:
        return not self.disabled and _in_past(self.published_at)


# ---------------------------------------------------------------------------
# Association tables
# ---------------------------------------------------------------------------
mod_version_spt_version = Table(
    "mod_version_spt_version",
    Base.metadata,
    Column("mod_version_id", ForeignKey("mod_versions.id", ondelete="CASCADE"), primary_key=True),
    Column("spt_version_id", ForeignKey("spt_versions.id", ondelete="CASCADE"), primary_key=True),
)

addon_version_mod_version = Table(
    "addon_version_mod_version",
    Base.metadata,
    Column("addon_version_id", ForeignKey("addon_versions.id", ondelete="CASCADE"), primary_key=True),
    Column("mod_version_id", ForeignKey("mod_versions.id", ondelete="CASCADE"), primary_key=True),
)


# ---------------------------------------------------------------------------
# Mods
# ---------------------------------------------------------------------------
class Mod(PublishableMixin, Base):
    __tablename__ = "mods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    versions: Mapped[list[ModVersion]] = relationship(
        back_populates="mod", cascade="all, delete-orphan"
    )
    addons: Mapped[list[Addon]] = relationship(
        back_populates="mod", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Mod id={self.id} guid={self.guid!r}>"


class ModVersion(VersionColumnsMixin, PublishableMixin, Base):
    __tablename__ = "mod_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mod_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mods.id", ondelete="CASCADE"), nullable=False
    )
    spt_version_constraint: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    downloads: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    mod: Mapped[Mod] = relationship(back_populates="versions")
    dependencies: Mapped[list[Dependency]] = relationship(
        back_populates="mod_version",
        cascade="all, delete-orphan",
        foreign_keys="Dependency.mod_version_id",
    )
    resolved_dependencies: Mapped[list[ResolvedDependency]] = relationship(
        back_populates="mod_version",
        cascade="all, delete-orphan",
        foreign_keys="ResolvedDependency.mod_version_id",
    )
    spt_versions: Mapped[list[SptVersion]] = relationship(
        secondary=mod_version_spt_version, back_populates="mod_versions"
    )

    __table_args__ = (
        Index("ix_mod_versions_mod_id", "mod_id"),
        Index(
            "ix_mod_versions_ordering",
            "mod_id", "version_major", "version_minor", "version_patch", "version_labels",
        ),
    )

    def __repr__(self) -> str:
        return f"<ModVersion id={self.id} mod={self.mod_id} version={self.version!r}>"


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
_ONE_OWNER = "(mod_version_id IS NULL) <> (addon_version_id IS NULL)"


class Dependency(Base):
    """A constraint on another mod, declared by a mod version or an add-on version.

    Exactly one of ``mod_version_id`` / ``addon_version_id`` is set.
    """
    __tablename__ = "dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mod_version_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("mod_versions.id", ondelete="CASCADE"), nullable=True
    )
    addon_version_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("addon_versions.id", ondelete="CASCADE"), nullable=True
    )
    dependent_mod_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mods.id", ondelete="CASCADE"), nullable=False
    )
    constraint: Mapped[str] = mapped_column(String(100), nullable=False)

    mod_version: Mapped[ModVersion | None] = relationship(
        back_populates="dependencies", foreign_keys=[mod_version_id]
    )
    addon_version: Mapped[AddonVersion | None] = relationship(
        back_populates="dependencies", foreign_keys=[addon_version_id]
    )
    dependent_mod: Mapped[Mod] = relationship(foreign_keys=[dependent_mod_id])
    resolutions: Mapped[list[ResolvedDependency]] = relationship(
        back_populates="dependency", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("mod_version_id", "dependent_mod_id", name="uq_dependencies_version_mod"),
        UniqueConstraint(
            "addon_version_id", "dependent_mod_id", name="uq_dependencies_addon_version_mod"
        ),
        CheckConstraint(_ONE_OWNER, name="ck_dependencies_one_owner"),
    )

    def __repr__(self) -> str:
        owner = (
            f"version={self.mod_version_id}" if self.mod_version_id is not None
            else f"addon_version={self.addon_version_id}"
        )
        return f"<Dependency id={self.id} {owner} needs mod={self.dependent_mod_id} {self.constraint!r}>"


class ResolvedDependency(Base):
    """One concrete mod version that satisfies a :class:`Dependency`.

    Owned by the same mod version or add-on version as the dependency.
    """
    __tablename__ = "resolved_dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mod_version_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("mod_versions.id", ondelete="CASCADE"), nullable=True
    )
    addon_version_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("addon_versions.id", ondelete="CASCADE"), nullable=True
    )
    dependency_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("dependencies.id", ondelete="CASCADE"), nullable=False
    )
    resolved_mod_version_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mod_versions.id", ondelete="CASCADE"), nullable=False
    )

    mod_version: Mapped[ModVersion | None] = relationship(
        back_populates="resolved_dependencies", foreign_keys=[mod_version_id]
    )
    addon_version: Mapped[AddonVersion | None] = relationship(
        back_populates="resolved_dependencies", foreign_keys=[addon_version_id]
    )
    dependency: Mapped[Dependency] = relationship(back_populates="resolutions")
    resolved_mod_version: Mapped[ModVersion] = relationship(
        foreign_keys=[resolved_mod_version_id]
    )

    __table_args__ = (
        UniqueConstraint(
            "dependency_id", "resolved_mod_version_id", name="uq_resolved_dependency_target"
        ),
        CheckConstraint(_ONE_OWNER, name="ck_resolved_dependencies_one_owner"),
    )


# ---------------------------------------------------------------------------
# Add-ons
# ---------------------------------------------------------------------------
class Addon(PublishableMixin, Base):
    __tablename__ = "addons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mod_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mods.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    mod: Mapped[Mod] = relationship(back_populates="addons")
    versions: Mapped[list[AddonVersion]] = relationship(
        back_populates="addon", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Addon id={self.id} slug={self.slug!r}>"


class AddonVersion(VersionColumnsMixin, PublishableMixin, Base):
    __tablename__ = "addon_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    addon_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("addons.id", ondelete="CASCADE"), nullable=False
    )
    mod_version_constraint: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    downloads: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    addon: Mapped[Addon] = relationship(back_populates="versions")
    dependencies: Mapped[list[Dependency]] = relationship(
        back_populates="addon_version",
        cascade="all, delete-orphan",
        foreign_keys="Dependency.addon_version_id",
    )
    resolved_dependencies: Mapped[list[ResolvedDependency]] = relationship(
        back_populates="addon_version",
        cascade="all, delete-orphan",
        foreign_keys="ResolvedDependency.addon_version_id",
    )
    compatible_mod_versions: Mapped[list[ModVersion]] = relationship(
        secondary=addon_version_mod_version
    )

    __table_args__ = (
        Index("ix_addon_versions_addon_id", "addon_id"),
    )

    def __repr__(self) -> str:
        return f"<AddonVersion id={self.id} addon={self.addon_id} version={self.version!r}>"


# ---------------------------------------------------------------------------
# SPT versions — releases of the game itself
# ---------------------------------------------------------------------------
class SptVersion(VersionColumnsMixin, Base):
    __tablename__ = "spt_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    link: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    publish_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    color_class: Mapped[str] = mapped_column(
        String(20), default=SptVersionColor.UNKNOWN.value, nullable=False
    )
    mod_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    mod_versions: Mapped[list[ModVersion]] = relationship(
        secondary=mod_version_spt_version, back_populates="spt_versions"
    )

    __table_args__ = (
        UniqueConstraint("version", name="uq_spt_versions_version"),
    )

    @classmethod
    def published(cls):
        """SQL predicate: ``publish_date`` is set and not in the future."""
        return and_(cls.publish_date.is_not(None), cls.publish_date <= datetime.now(UTC))

    @property
    def is_published(self) -> bool:
        return _in_past(self.publish_date)

    def __repr__(self) -> str:
        return f"<SptVersion id={self.id} version={self.version!r} color={self.color_class}>"
