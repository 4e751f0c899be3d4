"""Project service.

A project is created together with its default environment so that the
one-default-per-project invariant holds from the first commit.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import transaction
from src.db.tables import ProjectRow, UserRow
from src.models.common import Authority, SortOrder, UserSummary, new_uuid7
from src.models.project import CreateProject, Project, ProjectSortField, UpdateProject
from src.observability.events import EventEmitter, EventSource, EventType
from src.repositories.environments import EnvironmentRepository
from src.repositories.projects import ProjectRepository
from src.services.authority import AuthorityResolver
from src.services.errors import ConflictError, InvalidOperationError, NotFoundError

logger = logging.getLogger(__name__)


def to_project(row: ProjectRow, user: UserRow | None = None) -> Project:
    project = Project.model_validate(row)
    if user is not None:
        project.last_updated_by = UserSummary.model_validate(user)
    return project


class ProjectService:
    def __init__(self, session: AsyncSession, events: EventEmitter, *,
                 default_environment_name: str = "Default") -> None:
        self._session = session
        self._events = events
        self._default_environment_name = default_environment_name
        self._authority = AuthorityResolver(session)
        self._projects = ProjectRepository(session)
        self._environments = EnvironmentRepository(session)

    async def create_project(
        self, user_id: UUID, workspace_id: UUID, dto: CreateProject,
    ) -> Project:
        async with transaction(self._session):
            workspace = await self._authority.workspace(
                user_id, workspace_id, Authority.CREATE_PROJECT,
            )
            if await self._projects.exists(dto.name, workspace_id):
                raise ConflictError(
                    f"Project with name {dto.name} already exists in workspace "
                    f"{workspace.name} ({workspace_id})"
                )
            row = await self._projects.create(
                project_id=new_uuid7(),
                workspace_id=workspace_id,
                name=dto.name,
                description=dto.description,
                last_updated_by_id=user_id,
            )
            await self._environments.create(
                environment_id=new_uuid7(),
                project_id=row.project_id,
                name=self._default_environment_name,
                description="Default environment for the project",
                is_default=True,
                last_updated_by_id=user_id,
            )
            project = await self._load(row.project_id)

        logger.info("Project %s created in workspace %s", row.project_id, workspace_id)
        self._events.record(
            triggered_by=user_id,
            entity=row,
            type=EventType.PROJECT_CREATED,
            source=EventSource.PROJECT,
            title="Project created",
            metadata={
                "project_id": row.project_id,
                "name": row.name,
                "workspace_id": workspace_id,
                "workspace_name": workspace.name,
            },
        )
        return project

    async def update_project(
        self, user_id: UUID, project_id: UUID, dto: UpdateProject,
    ) -> Project:
        async with transaction(self._session):
            row = await self._authority.project(user_id, project_id, Authority.UPDATE_PROJECT)
            if (
                dto.name is not None
                and dto.name != row.name
                and await self._projects.exists(dto.name, row.workspace_id)
            ):
                raise ConflictError(
                    f"Project with name {dto.name} already exists in workspace "
                    f"{row.workspace_id}"
                )
            await self._projects.update(
                row, name=dto.name, description=dto.description, last_updated_by_id=user_id,
            )
            project = await self._load(project_id)

        logger.info("Project %s updated", project_id)
        self._events.record(
            triggered_by=user_id,
            entity=row,
            type=EventType.PROJECT_UPDATED,
            source=EventSource.PROJECT,
            title="Project updated",
            metadata={
                "project_id": project_id,
                "name": project.name,
                "workspace_id": project.workspace_id,
            },
        )
        return project

    async def get_project(self, user_id: UUID, project_id: UUID) -> Project:
        await self._authority.project(user_id, project_id, Authority.READ_PROJECT)
        return await self._load(project_id)

    async def list_projects(
        self,
        user_id: UUID,
        workspace_id: UUID,
        *,
        page: int = 0,
        limit: int = 10,
        sort: ProjectSortField = ProjectSortField.NAME,
        order: SortOrder = SortOrder.ASC,
        search: str = "",
    ) -> list[Project]:
        if page < 0 or limit < 1:
            raise InvalidOperationError("page must be >= 0 and limit must be >= 1")
        await self._authority.workspace(user_id, workspace_id, Authority.READ_PROJECT)
        rows = await self._projects.list_by_workspace(
            workspace_id, page=page, limit=limit, sort=sort, order=order, search=search,
        )
        return [to_project(project, user) for project, user in rows]

    async def delete_project(self, user_id: UUID, project_id: UUID) -> None:
        async with transaction(self._session):
            row = await self._authority.project(user_id, project_id, Authority.DELETE_PROJECT)
            name, workspace_id = row.name, row.workspace_id
            await self._projects.delete(project_id)

        logger.info("Project %s deleted from workspace %s", project_id, workspace_id)
        self._events.record(
            triggered_by=user_id,
            workspace_id=workspace_id,
            type=EventType.PROJECT_DELETED,
            source=EventSource.PROJECT,
            title="Project deleted",
            metadata={
                "project_id": project_id,
                "name": name,
                "workspace_id": workspace_id,
            },
        )

    async def _load(self, project_id: UUID) -> Project:
        found = await self._projects.get_with_user(project_id)
        if found is None:
            raise NotFoundError(f"Project {project_id} not found")
        return to_project(*found)
