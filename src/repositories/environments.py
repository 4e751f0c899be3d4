"""Environment repository.

Holds the name-uniqueness check and the bulk default-flag reset used by
the environment service. Neither commits: callers run them inside the
same transaction as the write they guard.
"""

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import EnvironmentRow, ProjectRow, UserRow
from src.models.common import SortOrder, utc_now
from src.models.environment import EnvironmentSortField
from src.repositories.base import apply_page, contains_substring

_SORT_COLUMNS = {
    EnvironmentSortField.NAME: EnvironmentRow.name,
    EnvironmentSortField.DESCRIPTION: EnvironmentRow.description,
    EnvironmentSortField.IS_DEFAULT: EnvironmentRow.is_default,
    EnvironmentSortField.CREATED_AT: EnvironmentRow.created_at,
    EnvironmentSortField.UPDATED_AT: EnvironmentRow.updated_at,
}


class EnvironmentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, environment_id: UUID, project_id: UUID, name: str,
                     description: str | None, is_default: bool,
                     last_updated_by_id: UUID | None) -> EnvironmentRow:
        now = utc_now()
        row = EnvironmentRow(
            environment_id=environment_id,
            project_id=project_id,
            name=name,
            description=description,
            is_default=is_default,
            last_updated_by_id=last_updated_by_id,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, environment_id: UUID) -> EnvironmentRow | None:
        return await self._session.get(EnvironmentRow, environment_id)

    async def get_with_project(
        self, environment_id: UUID,
    ) -> tuple[EnvironmentRow, ProjectRow] | None:
        result = await self._session.execute(
            select(EnvironmentRow, ProjectRow)
            .join(ProjectRow, ProjectRow.project_id == EnvironmentRow.project_id)
            .where(EnvironmentRow.environment_id == environment_id)
        )
        pair = result.one_or_none()
        if pair is None:
            return None
        return pair[0], pair[1]

    async def get_with_user(
        self, environment_id: UUID,
    ) -> tuple[EnvironmentRow, UserRow | None] | None:
        result = await self._session.execute(
            select(EnvironmentRow, UserRow)
            .outerjoin(UserRow, UserRow.user_id == EnvironmentRow.last_updated_by_id)
            .where(EnvironmentRow.environment_id == environment_id)
        )
        pair = result.one_or_none()
        if pair is None:
            return None
        return pair[0], pair[1]

    async def exists(self, name: str, project_id: UUID) -> bool:
        """True if ``project_id`` already has an environment called ``name``.

        Exact, case-sensitive comparison.
        """
        result = await self._session.execute(
            select(EnvironmentRow.environment_id).where(
                EnvironmentRow.project_id == project_id,
                EnvironmentRow.name == name,
            ).limit(1)
        )
        return result.first() is not None

    async def count_by_project(self, project_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(EnvironmentRow).where(
                EnvironmentRow.project_id == project_id,
            )
        )
        return int(result.scalar_one())

    async def make_all_non_default(self, project_id: UUID) -> int:
        """Clear ``is_default`` on every environment of the project.

        Returns the number of rows touched.
        """
        result = await self._session.execute(
            update(EnvironmentRow)
            .where(EnvironmentRow.project_id == project_id)
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def update(self, row: EnvironmentRow, *, name: str | None = None,
                     description: str | None = None, is_default: bool | None = None,
                     last_updated_by_id: UUID | None = None) -> EnvironmentRow:
        if name is not None:
            row.name = name
        if description is not None:
            row.description = description
        if is_default is not None:
            row.is_default = is_default
        row.last_updated_by_id = last_updated_by_id
        row.updated_at = utc_now()
        await self._session.flush()
        return row

    async def delete(self, environment_id: UUID) -> None:
        await self._session.execute(
            delete(EnvironmentRow).where(EnvironmentRow.environment_id == environment_id)
        )

    async def list_by_project(
        self,
        project_id: UUID,
        *,
        page: int,
        limit: int,
        sort: EnvironmentSortField,
        order: SortOrder,
        search: str = "",
    ) -> list[tuple[EnvironmentRow, UserRow | None]]:
        stmt = (
            select(EnvironmentRow, UserRow)
            .outerjoin(UserRow, UserRow.user_id == EnvironmentRow.last_updated_by_id)
            .where(EnvironmentRow.project_id == project_id)
        )
        if search:
            stmt = stmt.where(contains_substring(EnvironmentRow.name, search))
        stmt = apply_page(
            stmt, sort_column=_SORT_COLUMNS[sort], order=order, page=page, limit=limit,
        )
        result = await self._session.execute(stmt)
        return [(env, user) for env, user in result.all()]
