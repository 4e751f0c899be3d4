"""FastAPI dependency injection factories for services.

Each factory takes AsyncSession via Depends(get_async_session) and the
process event emitter from app state, and returns a service instance.
API endpoints use these via Depends().
"""

from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import Settings, get_settings
from src.db.session import get_async_session
from src.observability.events import EventEmitter
from src.repositories.workspace import UserRepository
from src.services.environments import EnvironmentService
from src.services.projects import ProjectService

# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


async def get_event_emitter(request: Request) -> EventEmitter:
    return request.app.state.events


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------


async def get_current_user_id(
    x_user_id: str | None = Header(default=None),
    session: AsyncSession = Depends(get_async_session),
) -> UUID:
    """Resolve the authenticated principal.

    Authentication happens upstream; the gateway forwards the caller id in
    the ``X-User-Id`` header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header.")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Malformed X-User-Id header.") from None
    if await UserRepository(session).get(user_id) is None:
        raise HTTPException(status_code=401, detail="Unknown user.")
    return user_id


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


async def get_environment_service(
    session: AsyncSession = Depends(get_async_session),
    events: EventEmitter = Depends(get_event_emitter),
) -> EnvironmentService:
    return EnvironmentService(session, events)


async def get_project_service(
    session: AsyncSession = Depends(get_async_session),
    events: EventEmitter = Depends(get_event_emitter),
    settings: Settings = Depends(get_settings),
) -> ProjectService:
    return ProjectService(
        session, events, default_environment_name=settings.DEFAULT_ENVIRONMENT_NAME,
    )
