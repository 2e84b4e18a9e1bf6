"""Create roadmaps, visibility_settings and visibility_audit_log tables

Revision ID: create_visibility_tables
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "create_visibility_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "roadmaps",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("difficulty", sa.String(), nullable=False),
        sa.Column("estimated_hours", sa.Float(), nullable=False),
        sa.Column("nodes", sa.JSON(), nullable=False),
        sa.Column("edges", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_roadmaps_slug", "roadmaps", ["slug"], unique=True)

    op.create_table(
        "visibility_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("parent_roadmap_slug", sa.String(), nullable=True),
        sa.Column("parent_milestone_id", sa.String(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("updated_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("entity_type", "entity_id", name="unique_visibility_entity"),
    )
    op.create_index(
        "ix_visibility_settings_entity_type", "visibility_settings", ["entity_type"]
    )
    op.create_index(
        "ix_visibility_settings_parent_roadmap_slug",
        "visibility_settings",
        ["parent_roadmap_slug"],
    )
    op.create_index(
        "ix_visibility_settings_parent_milestone_id",
        "visibility_settings",
        ["parent_milestone_id"],
    )

    # Append-only: no foreign keys, entries outlive the settings they describe
    op.create_table(
        "visibility_audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("old_value", sa.Boolean(), nullable=True),
        sa.Column("new_value", sa.Boolean(), nullable=True),
        sa.Column("parent_roadmap_slug", sa.String(), nullable=True),
        sa.Column("parent_milestone_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_visibility_audit_log_actor_id", "visibility_audit_log", ["actor_id"])
    op.create_index("ix_visibility_audit_log_entity_id", "visibility_audit_log", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_visibility_audit_log_entity_id", table_name="visibility_audit_log")
    op.drop_index("ix_visibility_audit_log_actor_id", table_name="visibility_audit_log")
    op.drop_table("visibility_audit_log")

    op.drop_index("ix_visibility_settings_parent_milestone_id", table_name="visibility_settings")
    op.drop_index("ix_visibility_settings_parent_roadmap_slug", table_name="visibility_settings")
    op.drop_index("ix_visibility_settings_entity_type", table_name="visibility_settings")
    op.drop_table("visibility_settings")

    op.drop_index("ix_roadmaps_slug", table_name="roadmaps")
    op.drop_table("roadmaps")
