"""FastAPI project endpoints.

POST   /v1/projects/{workspace_id}       — create (with default environment)
PUT    /v1/projects/{project_id}         — partial update
GET    /v1/projects/{project_id}         — get
GET    /v1/projects/all/{workspace_id}   — list (paginated, searchable)
DELETE /v1/projects/{project_id}         — delete (cascades)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from src.api.dependencies import get_current_user_id, get_project_service
from src.config.settings import Settings, get_settings
from src.models.common import SortOrder
from src.models.project import CreateProject, Project, ProjectSortField, UpdateProject
from src.services.projects import ProjectService

router = APIRouter(prefix="/v1/projects", tags=["projects"])


@router.post("/{workspace_id}", status_code=201, response_model=Project)
async def create_project(
    workspace_id: UUID,
    body: CreateProject,
    user_id: UUID = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
) -> Project:
    return await service.create_project(user_id, workspace_id, body)


@router.put("/{project_id}", response_model=Project)
async def update_project(
    project_id: UUID,
    body: UpdateProject,
    user_id: UUID = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
) -> Project:
    return await service.update_project(user_id, project_id, body)


@router.get("/all/{workspace_id}", response_model=list[Project])
async def list_projects(
    workspace_id: UUID,
    page: int = Query(default=0, ge=0, description="Zero-origin page index."),
    limit: int | None = Query(default=None, ge=1, le=100),
    sort: ProjectSortField = Query(default=ProjectSortField.NAME),
    order: SortOrder = Query(default=SortOrder.ASC),
    search: str = Query(default=""),
    user_id: UUID = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
    settings: Settings = Depends(get_settings),
) -> list[Project]:
    return await service.list_projects(
        user_id,
        workspace_id,
        page=page,
        limit=limit or settings.DEFAULT_PAGE_LIMIT,
        sort=sort,
        order=order,
        search=search,
    )


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
) -> Project:
    return await service.get_project(user_id, project_id)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: ProjectService = Depends(get_project_service),
) -> Response:
    await service.delete_project(user_id, project_id)
    return Response(status_code=204)
