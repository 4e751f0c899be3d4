"""Tests for SQLAlchemy ORM models — src/db/tables.py.

Tests verify:
- All tables are created
- Unique constraints on names within their parent
- Ownership cascades (project -> environment -> secret/variable)
- Event references are plain ids, so events outlive their subjects
"""

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import EnvironmentRow, EventRow, SecretRow
from src.models.common import new_uuid7, utc_now
from src.repositories.environments import EnvironmentRepository
from src.repositories.projects import ProjectRepository
from src.repositories.secrets import SecretRepository

EXPECTED_TABLES = {
    "users",
    "workspaces",
    "workspace_roles",
    "workspace_members",
    "workspace_member_roles",
    "projects",
    "environments",
    "secrets",
    "secret_versions",
    "variables",
    "variable_versions",
    "events",
}


class TestSchema:

    @pytest.mark.anyio
    async def test_all_tables_created(self, db_engine) -> None:
        async with db_engine.connect() as conn:
            names = await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
        assert names == EXPECTED_TABLES

    @pytest.mark.anyio
    async def test_events_type_is_indexed(self, db_engine) -> None:
        async with db_engine.connect() as conn:
            indexes = await conn.run_sync(lambda c: inspect(c).get_indexes("events"))
        indexed = {col for idx in indexes for col in idx["column_names"]}
        assert {"type", "project_id"} <= indexed


class TestConstraints:

    @pytest.mark.anyio
    async def test_environment_name_unique_per_project(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        now = utc_now()
        db_session.add(EnvironmentRow(
            environment_id=new_uuid7(), project_id=tenant.project_id,
            name="Default", is_default=False, created_at=now, updated_at=now,
        ))
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    @pytest.mark.anyio
    async def test_same_environment_name_in_other_project(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        other = await ProjectRepository(db_session).create(
            project_id=new_uuid7(), workspace_id=tenant.workspace_id, name="billing",
        )
        row = await EnvironmentRepository(db_session).create(
            environment_id=new_uuid7(), project_id=other.project_id,
            name="Default", description=None, is_default=True, last_updated_by_id=None,
        )
        assert row.project_id == other.project_id


class TestCascades:

    @pytest.mark.anyio
    async def test_project_delete_removes_environments_and_secrets(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        secret = await SecretRepository(db_session).create(
            secret_id=new_uuid7(), project_id=tenant.project_id,
            environment_id=tenant.default_environment_id,
            name="DB_PASSWORD", value="hunter2", created_by=tenant.admin_id,
        )
        await db_session.commit()

        await ProjectRepository(db_session).delete(tenant.project_id)
        await db_session.commit()
        db_session.expunge_all()

        envs = await db_session.execute(
            select(EnvironmentRow).where(EnvironmentRow.project_id == tenant.project_id)
        )
        assert envs.scalars().all() == []
        assert await db_session.get(SecretRow, secret.secret_id) is None

    @pytest.mark.anyio
    async def test_event_outlives_environment(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        event_id = new_uuid7()
        db_session.add(EventRow(
            event_id=event_id, source="ENVIRONMENT", triggerer="USER",
            severity="INFO", type="ENVIRONMENT_ADDED", title="Environment created",
            metadata_json={"name": "Default"}, timestamp=utc_now(),
            triggered_by_id=tenant.admin_id, workspace_id=tenant.workspace_id,
            project_id=tenant.project_id, environment_id=tenant.default_environment_id,
        ))
        await db_session.commit()

        await ProjectRepository(db_session).delete(tenant.project_id)
        await db_session.commit()
        db_session.expunge_all()

        event = await db_session.get(EventRow, event_id)
        assert event is not None
        assert event.environment_id == tenant.default_environment_id
        assert event.project_id == tenant.project_id
        assert event.workspace_id == tenant.workspace_id
        assert event.metadata_json == {"name": "Default"}
