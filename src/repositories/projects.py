"""Project repository."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import ProjectRow, UserRow
from src.models.common import SortOrder, utc_now
from src.models.project import ProjectSortField
from src.repositories.base import apply_page, contains_substring

_SORT_COLUMNS = {
    ProjectSortField.NAME: ProjectRow.name,
    ProjectSortField.DESCRIPTION: ProjectRow.description,
    ProjectSortField.CREATED_AT: ProjectRow.created_at,
    ProjectSortField.UPDATED_AT: ProjectRow.updated_at,
}


class ProjectRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, project_id: UUID, workspace_id: UUID, name: str,
                     description: str | None = None,
                     default_role_id: UUID | None = None,
                     last_updated_by_id: UUID | None = None) -> ProjectRow:
        now = utc_now()
        row = ProjectRow(
            project_id=project_id,
            workspace_id=workspace_id,
            name=name,
            description=description,
            default_role_id=default_role_id,
            last_updated_by_id=last_updated_by_id,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, project_id: UUID) -> ProjectRow | None:
        return await self._session.get(ProjectRow, project_id)

    async def get_with_user(
        self, project_id: UUID,
    ) -> tuple[ProjectRow, UserRow | None] | None:
        result = await self._session.execute(
            select(ProjectRow, UserRow)
            .outerjoin(UserRow, UserRow.user_id == ProjectRow.last_updated_by_id)
            .where(ProjectRow.project_id == project_id)
        )
        pair = result.one_or_none()
        if pair is None:
            return None
        return pair[0], pair[1]

    async def exists(self, name: str, workspace_id: UUID) -> bool:
        result = await self._session.execute(
            select(ProjectRow.project_id).where(
                ProjectRow.workspace_id == workspace_id,
                ProjectRow.name == name,
            ).limit(1)
        )
        return result.first() is not None

    async def update(self, row: ProjectRow, *, name: str | None = None,
                     description: str | None = None,
                     last_updated_by_id: UUID | None = None) -> ProjectRow:
        if name is not None:
            row.name = name
        if description is not None:
            row.description = description
        row.last_updated_by_id = last_updated_by_id
        row.updated_at = utc_now()
        await self._session.flush()
        return row

    async def delete(self, project_id: UUID) -> None:
        """Delete the project; environments, secrets and variables cascade."""
        await self._session.execute(
            delete(ProjectRow).where(ProjectRow.project_id == project_id)
        )

    async def list_by_workspace(
        self,
        workspace_id: UUID,
        *,
        page: int,
        limit: int,
        sort: ProjectSortField,
        order: SortOrder,
        search: str = "",
    ) -> list[tuple[ProjectRow, UserRow | None]]:
        stmt = (
            select(ProjectRow, UserRow)
            .outerjoin(UserRow, UserRow.user_id == ProjectRow.last_updated_by_id)
            .where(ProjectRow.workspace_id == workspace_id)
        )
        if search:
            stmt = stmt.where(contains_substring(ProjectRow.name, search))
        stmt = apply_page(
            stmt, sort_column=_SORT_COLUMNS[sort], order=order, page=page, limit=limit,
        )
        result = await self._session.execute(stmt)
        return [(project, user) for project, user in result.all()]
