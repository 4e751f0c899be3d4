"""Shared pytest fixtures for the Cellar test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables and FK enforcement
- session_factory / db_session: sessions bound to that engine
- recorded_events / events: a started EventEmitter whose sink collects events
- tenant: a committed workspace with admin, editor, viewer and outsider users
- client: AsyncClient with session and emitter dependencies overridden
"""

from dataclasses import dataclass
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from uuid_extensions import uuid7

from src.db.session import Base, get_async_session
import src.db.tables  # noqa: F401  (registers ORM models on Base.metadata)
from src.models.common import Authority
from src.observability.events import EventEmitter, EventRecord
from src.repositories.environments import EnvironmentRepository
from src.repositories.projects import ProjectRepository
from src.repositories.workspace import (
    UserRepository,
    WorkspaceMemberRepository,
    WorkspaceRepository,
    WorkspaceRoleRepository,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def recorded_events() -> list[EventRecord]:
    return []


@pytest.fixture
async def events(recorded_events):
    """Started emitter whose sink appends to ``recorded_events``."""

    async def sink(event: EventRecord) -> None:
        recorded_events.append(event)

    emitter = EventEmitter(sink, max_queue_size=100)
    emitter.start()
    yield emitter
    await emitter.stop()


# ---------------------------------------------------------------------------
# Tenant
# ---------------------------------------------------------------------------

EDITOR_AUTHORITIES = [
    Authority.READ_PROJECT,
    Authority.CREATE_ENVIRONMENT,
    Authority.READ_ENVIRONMENT,
    Authority.UPDATE_ENVIRONMENT,
]

VIEWER_AUTHORITIES = [Authority.READ_PROJECT, Authority.READ_ENVIRONMENT]


@dataclass
class Tenant:
    workspace_id: UUID
    project_id: UUID
    default_environment_id: UUID
    admin_id: UUID
    editor_id: UUID
    viewer_id: UUID
    outsider_id: UUID


async def seed_tenant(session: AsyncSession) -> Tenant:
    """Workspace with one project holding a single default environment.

    admin    — Admin role (has_admin_authority, empty authority list)
    editor   — create/read/update environments, no delete
    viewer   — read-only
    outsider — registered user, not a member
    """
    users = UserRepository(session)
    admin = await users.create(user_id=uuid7(), email="admin@example.com", name="Admin")
    editor = await users.create(user_id=uuid7(), email="editor@example.com", name="Editor")
    viewer = await users.create(user_id=uuid7(), email="viewer@example.com", name="Viewer")
    outsider = await users.create(user_id=uuid7(), email="outsider@example.com")

    workspace = await WorkspaceRepository(session).create(
        workspace_id=uuid7(), name="Acme", owner_id=admin.user_id,
    )
    roles = WorkspaceRoleRepository(session)
    admin_role = await roles.create(
        role_id=uuid7(), workspace_id=workspace.workspace_id,
        name="Admin", has_admin_authority=True,
    )
    editor_role = await roles.create(
        role_id=uuid7(), workspace_id=workspace.workspace_id,
        name="Editor", authorities=EDITOR_AUTHORITIES,
    )
    viewer_role = await roles.create(
        role_id=uuid7(), workspace_id=workspace.workspace_id,
        name="Viewer", authorities=VIEWER_AUTHORITIES,
    )

    members = WorkspaceMemberRepository(session)
    for user, role in ((admin, admin_role), (editor, editor_role), (viewer, viewer_role)):
        await members.add(
            member_id=uuid7(), workspace_id=workspace.workspace_id,
            user_id=user.user_id, role_ids=[role.role_id],
        )

    project = await ProjectRepository(session).create(
        project_id=uuid7(), workspace_id=workspace.workspace_id,
        name="payments", last_updated_by_id=admin.user_id,
    )
    default_env = await EnvironmentRepository(session).create(
        environment_id=uuid7(), project_id=project.project_id,
        name="Default", description=None, is_default=True,
        last_updated_by_id=admin.user_id,
    )
    await session.commit()

    return Tenant(
        workspace_id=workspace.workspace_id,
        project_id=project.project_id,
        default_environment_id=default_env.environment_id,
        admin_id=admin.user_id,
        editor_id=editor.user_id,
        viewer_id=viewer.user_id,
        outsider_id=outsider.user_id,
    )


@pytest.fixture
async def tenant(db_session) -> Tenant:
    return await seed_tenant(db_session)


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@pytest.fixture
async def client(session_factory, events):
    """AsyncClient with the session and event emitter dependencies overridden."""
    from src.api.dependencies import get_event_emitter
    from src.api.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _override_events():
        return events

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_event_emitter] = _override_events

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
