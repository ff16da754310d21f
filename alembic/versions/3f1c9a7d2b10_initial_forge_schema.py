"""Initial Forge schema: mods, add-ons, SPT versions, dependencies

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


def _version_columns() -> list[sa.Column]:
    return [
        sa.Column("version", sa.String(50), nullable=False),
        sa.Column("version_major", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version_minor", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version_patch", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version_labels", sa.String(100), nullable=False, server_default=""),
    ]


def _publish_columns() -> list[sa.Column]:
    return [
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
    ]


def upgrade() -> None:
    op.create_table(
        "mods",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("guid", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        *_publish_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "spt_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        *_version_columns(),
        sa.Column("link", sa.String(500), nullable=False, server_default=""),
        sa.Column("color_class", sa.String(20), nullable=False, server_default="gray"),
        sa.Column("mod_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("version", name="uq_spt_versions_version"),
    )

    op.create_table(
        "mod_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "mod_id", sa.Integer(),
            sa.ForeignKey("mods.id", ondelete="CASCADE"), nullable=False,
        ),
        *_version_columns(),
        sa.Column("spt_version_constraint", sa.String(100), nullable=False, server_default=""),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="0"),
        *_publish_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_mod_versions_mod_id", "mod_versions", ["mod_id"])
    op.create_index(
        "ix_mod_versions_ordering",
        "mod_versions",
        ["mod_id", "version_major", "version_minor", "version_patch", "version_labels"],
    )

    op.create_table(
        "dependencies",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "mod_version_id", sa.Integer(),
            sa.ForeignKey("mod_versions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "dependent_mod_id", sa.Integer(),
            sa.ForeignKey("mods.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("constraint", sa.String(100), nullable=False),
        sa.UniqueConstraint(
            "mod_version_id", "dependent_mod_id", name="uq_dependencies_version_mod"
        ),
    )

    op.create_table(
        "resolved_dependencies",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "mod_version_id", sa.Integer(),
            sa.ForeignKey("mod_versions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "dependency_id", sa.Integer(),
            sa.ForeignKey("dependencies.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "resolved_mod_version_id", sa.Integer(),
            sa.ForeignKey("mod_versions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.UniqueConstraint(
            "dependency_id", "resolved_mod_version_id", name="uq_resolved_dependency_target"
        ),
    )

    op.create_table(
        "addons",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "mod_id", sa.Integer(),
            sa.ForeignKey("mods.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        *_publish_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "addon_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "addon_id", sa.Integer(),
            sa.ForeignKey("addons.id", ondelete="CASCADE"), nullable=False,
        ),
        *_version_columns(),
        sa.Column("mod_version_constraint", sa.String(100), nullable=False, server_default=""),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="0"),
        *_publish_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_addon_versions_addon_id", "addon_versions", ["addon_id"])

    op.create_table(
        "mod_version_spt_version",
        sa.Column(
            "mod_version_id", sa.Integer(),
            sa.ForeignKey("mod_versions.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "spt_version_id", sa.Integer(),
            sa.ForeignKey("spt_versions.id", ondelete="CASCADE"), primary_key=True,
        ),
    )

    op.create_table(
        "addon_version_mod_version",
        sa.Column(
            "addon_version_id", sa.Integer(),
            sa.ForeignKey("addon_versions.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "mod_version_id", sa.Integer(),
            sa.ForeignKey("mod_versions.id", ondelete="CASCADE"), primary_key=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("addon_version_mod_version")
    op.drop_table("mod_version_spt_version")
    op.drop_index("ix_addon_versions_addon_id", table_name="addon_versions")
    op.drop_table("addon_versions")
    op.drop_table("addons")
    op.drop_table("resolved_dependencies")
    op.drop_table("dependencies")
    op.drop_index("ix_mod_versions_ordering", table_name="mod_versions")
    op.drop_index("ix_mod_versions_mod_id", table_name="mod_versions")
    op.drop_table("mod_versions")
    op.drop_table("spt_versions")
    op.drop_table("mods")
