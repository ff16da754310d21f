"""Add-on version dependencies, SPT publish dates, C-collated version labels

Revision ID: 8b2e4f6a1c93
Revises: 3f1c9a7d2b10
Create Date: 2026-10-19 18:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "8b2e4f6a1c93"
down_revision = "3f1c9a7d2b10"
branch_labels = None
depends_on = None

VERSIONED_TABLES = ("mod_versions", "addon_versions", "spt_versions")
ONE_OWNER = "(mod_version_id IS NULL) <> (addon_version_id IS NULL)"


def upgrade() -> None:
    with op.batch_alter_table("spt_versions") as batch:
        batch.add_column(sa.Column("publish_date", sa.DateTime(timezone=True), nullable=True))
    # Releases mirrored before this revision were already public on GitHub
    op.execute("UPDATE spt_versions SET publish_date = created_at WHERE version <> '0.0.0'")

    if op.get_bind().dialect.name == "postgresql":
        for table in VERSIONED_TABLES:
            op.alter_column(
                table, "version_labels",
                type_=sa.String(100, collation="C"),
                existing_type=sa.String(100),
                existing_nullable=False,
            )

    for table, name in (
        ("dependencies", "uq_dependencies_addon_version_mod"),
        ("resolved_dependencies", None),
    ):
        with op.batch_alter_table(table) as batch:
            batch.add_column(sa.Column("addon_version_id", sa.Integer(), nullable=True))
            batch.create_foreign_key(
                f"fk_{table}_addon_version_id", "addon_versions",
                ["addon_version_id"], ["id"], ondelete="CASCADE",
            )
            batch.alter_column("mod_version_id", existing_type=sa.Integer(), nullable=True)
            batch.create_check_constraint(f"ck_{table}_one_owner", ONE_OWNER)
            if name is not None:
                batch.create_unique_constraint(name, ["addon_version_id", "dependent_mod_id"])


def downgrade() -> None:
    op.execute("DELETE FROM resolved_dependencies WHERE addon_version_id IS NOT NULL")
    op.execute("DELETE FROM dependencies WHERE addon_version_id IS NOT NULL")

    for table, name in (
        ("resolved_dependencies", None),
        ("dependencies", "uq_dependencies_addon_version_mod"),
    ):
        with op.batch_alter_table(table) as batch:
            if name is not None:
                batch.drop_constraint(name, type_="unique")
            batch.drop_constraint(f"ck_{table}_one_owner", type_="check")
            batch.alter_column("mod_version_id", existing_type=sa.Integer(), nullable=False)
            batch.drop_constraint(f"fk_{table}_addon_version_id", type_="foreignkey")
            batch.drop_column("addon_version_id")

    if op.get_bind().dialect.name == "postgresql":
        for table in VERSIONED_TABLES:
            op.alter_column(
                table, "version_labels",
                type_=sa.String(100),
                existing_type=sa.String(100, collation="C"),
                existing_nullable=False,
            )

    with op.batch_alter_table("spt_versions") as batch:
        batch.drop_column("publish_date")
