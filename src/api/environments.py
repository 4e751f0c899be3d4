"""FastAPI environment endpoints.

POST   /v1/environments/{project_id}          — create
PUT    /v1/environments/{environment_id}      — partial update
GET    /v1/environments/{environment_id}      — get
GET    /v1/environments/all/{project_id}      — list (paginated, searchable)
DELETE /v1/environments/{environment_id}      — delete (non-default only)

The caller is identified by the X-User-Id header. Domain failures are
translated to HTTP statuses by the handlers in src.api.main.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from src.api.dependencies import get_current_user_id, get_environment_service
from src.config.settings import Settings, get_settings
from src.models.common import SortOrder
from src.models.environment import (
    CreateEnvironment,
    Environment,
    EnvironmentSortField,
    UpdateEnvironment,
)
from src.services.environments import EnvironmentService

router = APIRouter(prefix="/v1/environments", tags=["environments"])


@router.post("/{project_id}", status_code=201, response_model=Environment)
async def create_environment(
    project_id: UUID,
    body: CreateEnvironment,
    user_id: UUID = Depends(get_current_user_id),
    service: EnvironmentService = Depends(get_environment_service),
) -> Environment:
    return await service.create_environment(user_id, project_id, body)


@router.put("/{environment_id}", response_model=Environment)
async def update_environment(
    environment_id: UUID,
    body: UpdateEnvironment,
    user_id: UUID = Depends(get_current_user_id),
    service: EnvironmentService = Depends(get_environment_service),
) -> Environment:
    return await service.update_environment(user_id, environment_id, body)


@router.get("/all/{project_id}", response_model=list[Environment])
async def list_environments(
    project_id: UUID,
    page: int = Query(default=0, ge=0, description="Zero-origin page index."),
    limit: int | None = Query(default=None, ge=1, le=100),
    sort: EnvironmentSortField = Query(default=EnvironmentSortField.NAME),
    order: SortOrder = Query(default=SortOrder.ASC),
    search: str = Query(default=""),
    user_id: UUID = Depends(get_current_user_id),
    service: EnvironmentService = Depends(get_environment_service),
    settings: Settings = Depends(get_settings),
) -> list[Environment]:
    return await service.list_environments(
        user_id,
        project_id,
        page=page,
        limit=limit or settings.DEFAULT_PAGE_LIMIT,
        sort=sort,
        order=order,
        search=search,
    )


@router.get("/{environment_id}", response_model=Environment)
async def get_environment(
    environment_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: EnvironmentService = Depends(get_environment_service),
) -> Environment:
    return await service.get_environment(user_id, environment_id)


@router.delete("/{environment_id}", status_code=204)
async def delete_environment(
    environment_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: EnvironmentService = Depends(get_environment_service),
) -> Response:
    await service.delete_environment(user_id, environment_id)
    return Response(status_code=204)
