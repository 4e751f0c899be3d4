"""Authority resolution — the gate in front of every service operation.

Loads the target resource, derives the caller's effective authority set
in the owning workspace, and asserts the required authority. Read-only:
nothing here writes or commits.

Order of checks: a missing resource is NotFoundError; an existing one the
caller may not touch is ForbiddenError.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import EnvironmentRow, ProjectRow, WorkspaceRow
from src.models.common import Authority
from src.models.workspace import effective_permissions
from src.repositories.environments import EnvironmentRepository
from src.repositories.projects import ProjectRepository
from src.repositories.workspace import WorkspaceMemberRepository, WorkspaceRepository
from src.services.errors import ForbiddenError, NotFoundError


class AuthorityResolver:
    def __init__(self, session: AsyncSession) -> None:
        self._workspaces = WorkspaceRepository(session)
        self._members = WorkspaceMemberRepository(session)
        self._projects = ProjectRepository(session)
        self._environments = EnvironmentRepository(session)

    async def permissions(self, user_id: UUID, workspace_id: UUID) -> frozenset[Authority]:
        grants = await self._members.role_grants(workspace_id, user_id)
        return effective_permissions(grants)

    async def workspace(self, user_id: UUID, workspace_id: UUID,
                        authority: Authority) -> WorkspaceRow:
        workspace = await self._workspaces.get(workspace_id)
        if workspace is None:
            raise NotFoundError(f"Workspace {workspace_id} not found")
        await self._require(user_id, workspace_id, authority,
                            f"workspace {workspace.name} ({workspace_id})")
        return workspace

    async def project(self, user_id: UUID, project_id: UUID,
                      authority: Authority) -> ProjectRow:
        project = await self._projects.get(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        await self._require(user_id, project.workspace_id, authority,
                            f"project {project.name} ({project_id})")
        return project

    async def environment(self, user_id: UUID, environment_id: UUID,
                          authority: Authority) -> tuple[EnvironmentRow, ProjectRow]:
        """Resolve an environment together with its owning project."""
        found = await self._environments.get_with_project(environment_id)
        if found is None:
            raise NotFoundError(f"Environment {environment_id} not found")
        environment, project = found
        await self._require(user_id, project.workspace_id, authority,
                            f"environment {environment.name} ({environment_id})")
        return environment, project

    async def _require(self, user_id: UUID, workspace_id: UUID,
                       authority: Authority, target: str) -> None:
        if authority not in await self.permissions(user_id, workspace_id):
            raise ForbiddenError(
                f"User {user_id} does not have the required authority "
                f"{authority.value} on {target}"
            )
