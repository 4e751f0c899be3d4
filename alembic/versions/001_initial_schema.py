"""Initial schema — tenancy, configuration hierarchy, versions, events.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _actor(name: str) -> sa.Column:
    return sa.Column(
        name, UUID(as_uuid=True),
        sa.ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True,
    )


def upgrade() -> None:
    # -- Identity & tenancy --
    op.create_table(
        "users",
        sa.Column("user_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "workspaces",
        sa.Column("workspace_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, server_default=""),
        _actor("owner_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "workspace_roles",
        sa.Column("role_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", UUID(as_uuid=True),
                  sa.ForeignKey("workspaces.workspace_id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("authorities", JSONB, nullable=False),
        sa.Column("has_admin_authority", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("workspace_id", "name", name="uq_workspace_role_name"),
    )

    op.create_table(
        "workspace_members",
        sa.Column("member_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", UUID(as_uuid=True),
                  sa.ForeignKey("workspaces.workspace_id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("workspace_id", "user_id", name="uq_workspace_member"),
    )

    op.create_table(
        "workspace_member_roles",
        sa.Column("member_id", UUID(as_uuid=True),
                  sa.ForeignKey("workspace_members.member_id", ondelete="CASCADE"),
                  primary_key=True),
        sa.Column("role_id", UUID(as_uuid=True),
                  sa.ForeignKey("workspace_roles.role_id", ondelete="CASCADE"),
                  primary_key=True),
    )

    # -- Configuration hierarchy --
    op.create_table(
        "projects",
        sa.Column("project_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", UUID(as_uuid=True),
                  sa.ForeignKey("workspaces.workspace_id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("default_role_id", UUID(as_uuid=True),
                  sa.ForeignKey("workspace_roles.role_id", ondelete="SET NULL"), nullable=True),
        _actor("last_updated_by_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("workspace_id", "name", name="uq_project_workspace_name"),
    )

    op.create_table(
        "environments",
        sa.Column("environment_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("project_id", UUID(as_uuid=True),
                  sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        _actor("last_updated_by_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("project_id", "name", name="uq_environment_project_name"),
    )

    # -- Versioned entries --
    for parent, key in (("secrets", "secret_id"), ("variables", "variable_id")):
        op.create_table(
            parent,
            sa.Column(key, UUID(as_uuid=True), primary_key=True),
            sa.Column("project_id", UUID(as_uuid=True),
                      sa.ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False),
            sa.Column("environment_id", UUID(as_uuid=True),
                      sa.ForeignKey("environments.environment_id", ondelete="CASCADE"),
                      nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("note", sa.Text, nullable=True),
            _actor("last_updated_by_id"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint(
                "environment_id", "name",
                name=f"uq_{parent[:-1]}_environment_name",
            ),
        )

    for versions, key, parent in (
        ("secret_versions", "secret_id", "secrets"),
        ("variable_versions", "variable_id", "variables"),
    ):
        op.create_table(
            versions,
            sa.Column(f"{versions[:-1]}_id", UUID(as_uuid=True), primary_key=True),
            sa.Column(key, UUID(as_uuid=True),
                      sa.ForeignKey(f"{parent}.{key}", ondelete="CASCADE"), nullable=False),
            sa.Column("version", sa.Integer, nullable=False),
            sa.Column("value", sa.Text, nullable=False),
            _actor("created_by_id"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint(key, "version", name=f"uq_{parent[:-1]}_version"),
        )

    # -- Audit (IMMUTABLE) --
    op.create_table(
        "events",
        sa.Column("event_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("triggerer", sa.String(20), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("metadata_json", JSONB, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        # Weak references: no FK, so an event may name an already-deleted row.
        sa.Column("triggered_by_id", UUID(as_uuid=True), nullable=True),
        sa.Column("workspace_id", UUID(as_uuid=True), nullable=True),
        sa.Column("project_id", UUID(as_uuid=True), nullable=True),
        sa.Column("environment_id", UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_events_type", "events", ["type"])
    op.create_index("ix_events_project_id", "events", ["project_id"])


def downgrade() -> None:
    op.drop_index("ix_events_project_id", table_name="events")
    op.drop_index("ix_events_type", table_name="events")
    for table in (
        "events",
        "variable_versions",
        "secret_versions",
        "variables",
        "secrets",
        "environments",
        "projects",
        "workspace_member_roles",
        "workspace_members",
        "workspace_roles",
        "workspaces",
        "users",
    ):
        op.drop_table(table)
