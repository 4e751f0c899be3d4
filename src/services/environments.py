"""Environment service — permission-gated CRUD with the default invariant.

Within a project at most one environment is default, and a project with
any environments has exactly one. The service keeps this true by clearing
every default flag and setting the new one inside the same transaction,
and by refusing updates or deletes that would leave no default.

Each mutation runs as one transaction:
authority -> business checks -> write -> commit -> audit event.
The event is enqueued only after the commit succeeds.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import transaction
from src.db.tables import EnvironmentRow, UserRow
from src.models.common import Authority, SortOrder, UserSummary, new_uuid7
from src.models.environment import (
    CreateEnvironment,
    Environment,
    EnvironmentSortField,
    UpdateEnvironment,
)
from src.observability.events import EventEmitter, EventSource, EventType
from src.repositories.environments import EnvironmentRepository
from src.services.authority import AuthorityResolver
from src.services.errors import ConflictError, InvalidOperationError, NotFoundError

logger = logging.getLogger(__name__)


def to_environment(row: EnvironmentRow, user: UserRow | None = None) -> Environment:
    env = Environment.model_validate(row)
    if user is not None:
        env.last_updated_by = UserSummary.model_validate(user)
    return env


class EnvironmentService:
    def __init__(self, session: AsyncSession, events: EventEmitter) -> None:
        self._session = session
        self._events = events
        self._authority = AuthorityResolver(session)
        self._environments = EnvironmentRepository(session)

    async def create_environment(
        self, user_id: UUID, project_id: UUID, dto: CreateEnvironment,
    ) -> Environment:
        async with transaction(self._session):
            project = await self._authority.project(
                user_id, project_id, Authority.CREATE_ENVIRONMENT,
            )

            if await self._environments.exists(dto.name, project_id):
                raise ConflictError(
                    f"Environment with name {dto.name} already exists in project "
                    f"{project.name} ({project_id})"
                )

            # The first environment of a project is always its default.
            is_default = dto.is_default
            if not is_default and await self._environments.count_by_project(project_id) == 0:
                is_default = True

            if is_default:
                await self._environments.make_all_non_default(project_id)

            row = await self._environments.create(
                environment_id=new_uuid7(),
                project_id=project_id,
                name=dto.name,
                description=dto.description,
                is_default=is_default,
                last_updated_by_id=user_id,
            )
            environment = await self._load(row.environment_id)

        logger.info("Environment %s created in project %s", row.environment_id, project_id)
        self._events.record(
            triggered_by=user_id,
            entity=row,
            workspace_id=project.workspace_id,
            type=EventType.ENVIRONMENT_ADDED,
            source=EventSource.ENVIRONMENT,
            title="Environment created",
            metadata={
                "environment_id": row.environment_id,
                "name": row.name,
                "project_id": project_id,
                "project_name": project.name,
            },
        )
        return environment

    async def update_environment(
        self, user_id: UUID, environment_id: UUID, dto: UpdateEnvironment,
    ) -> Environment:
        async with transaction(self._session):
            row, project = await self._authority.environment(
                user_id, environment_id, Authority.UPDATE_ENVIRONMENT,
            )

            # Renaming to the current name counts as a collision.
            if dto.name is not None and (
                dto.name == row.name
                or await self._environments.exists(dto.name, row.project_id)
            ):
                raise ConflictError(
                    f"Environment with name {dto.name} already exists in project "
                    f"{project.name} ({row.project_id})"
                )

            if dto.is_default is False and row.is_default:
                count = await self._environments.count_by_project(row.project_id)
                if count == 1:
                    raise InvalidOperationError("Cannot make the last environment non-default")
                raise InvalidOperationError(
                    "Cannot make the default environment non-default; "
                    "make another environment default instead"
                )

            if dto.is_default:
                await self._environments.make_all_non_default(row.project_id)

            await self._environments.update(
                row,
                name=dto.name,
                description=dto.description,
                is_default=dto.is_default,
                last_updated_by_id=user_id,
            )
            environment = await self._load(environment_id)

        logger.info("Environment %s updated", environment_id)
        self._events.record(
            triggered_by=user_id,
            entity=row,
            workspace_id=project.workspace_id,
            type=EventType.ENVIRONMENT_UPDATED,
            source=EventSource.ENVIRONMENT,
            title="Environment updated",
            metadata={
                "environment_id": environment_id,
                "name": environment.name,
                "project_id": environment.project_id,
            },
        )
        return environment

    async def get_environment(self, user_id: UUID, environment_id: UUID) -> Environment:
        await self._authority.environment(user_id, environment_id, Authority.READ_ENVIRONMENT)
        return await self._load(environment_id)

    async def list_environments(
        self,
        user_id: UUID,
        project_id: UUID,
        *,
        page: int = 0,
        limit: int = 10,
        sort: EnvironmentSortField = EnvironmentSortField.NAME,
        order: SortOrder = SortOrder.ASC,
        search: str = "",
    ) -> list[Environment]:
        """One page of the project's environments.

        ``page`` is zero-origin: rows skipped = page * limit.
        """
        if page < 0 or limit < 1:
            raise InvalidOperationError("page must be >= 0 and limit must be >= 1")
        await self._authority.project(user_id, project_id, Authority.READ_ENVIRONMENT)
        rows = await self._environments.list_by_project(
            project_id, page=page, limit=limit, sort=sort, order=order, search=search,
        )
        return [to_environment(env, user) for env, user in rows]

    async def delete_environment(self, user_id: UUID, environment_id: UUID) -> None:
        async with transaction(self._session):
            row, project = await self._authority.environment(
                user_id, environment_id, Authority.DELETE_ENVIRONMENT,
            )
            if row.is_default:
                raise InvalidOperationError("Cannot delete the default environment")
            name = row.name
            await self._environments.delete(environment_id)

        logger.info("Environment %s deleted from project %s", environment_id, project.project_id)
        self._events.record(
            triggered_by=user_id,
            entity=project,
            type=EventType.ENVIRONMENT_DELETED,
            source=EventSource.ENVIRONMENT,
            title="Environment deleted",
            metadata={
                "environment_id": environment_id,
                "name": name,
                "project_id": project.project_id,
            },
        )

    async def _load(self, environment_id: UUID) -> Environment:
        found = await self._environments.get_with_user(environment_id)
        if found is None:
            raise NotFoundError(f"Environment {environment_id} not found")
        return to_environment(*found)
