"""Workspace, role, membership and user repositories."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import (
    UserRow,
    WorkspaceMemberRoleRow,
    WorkspaceMemberRow,
    WorkspaceRoleRow,
    WorkspaceRow,
)
from src.models.common import Authority, utc_now
from src.models.workspace import RoleGrant


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: UUID, email: str,
                     name: str | None = None) -> UserRow:
        row = UserRow(user_id=user_id, email=email, name=name, created_at=utc_now())
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, user_id: UUID) -> UserRow | None:
        return await self._session.get(UserRow, user_id)

    async def get_by_email(self, email: str) -> UserRow | None:
        result = await self._session.execute(
            select(UserRow).where(UserRow.email == email)
        )
        return result.scalar_one_or_none()


class WorkspaceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, workspace_id: UUID, name: str,
                     description: str = "", owner_id: UUID | None = None) -> WorkspaceRow:
        now = utc_now()
        row = WorkspaceRow(
            workspace_id=workspace_id, name=name,
            description=description, owner_id=owner_id,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, workspace_id: UUID) -> WorkspaceRow | None:
        return await self._session.get(WorkspaceRow, workspace_id)


class WorkspaceRoleRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, role_id: UUID, workspace_id: UUID, name: str,
                     authorities: list[Authority] | None = None,
                     has_admin_authority: bool = False,
                     description: str = "") -> WorkspaceRoleRow:
        row = WorkspaceRoleRow(
            role_id=role_id,
            workspace_id=workspace_id,
            name=name,
            description=description,
            authorities=[str(a) for a in (authorities or [])],
            has_admin_authority=has_admin_authority,
            created_at=utc_now(),
        )
        self._session.add(row)
        await self._session.flush()
        return row


class WorkspaceMemberRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, *, member_id: UUID, workspace_id: UUID, user_id: UUID,
                  role_ids: list[UUID] | None = None) -> WorkspaceMemberRow:
        row = WorkspaceMemberRow(
            member_id=member_id, workspace_id=workspace_id,
            user_id=user_id, created_at=utc_now(),
        )
        self._session.add(row)
        await self._session.flush()
        for role_id in role_ids or []:
            self._session.add(WorkspaceMemberRoleRow(member_id=member_id, role_id=role_id))
        await self._session.flush()
        return row

    async def role_grants(self, workspace_id: UUID, user_id: UUID) -> list[RoleGrant]:
        """Roles assigned to the user's membership in ``workspace_id``.

        Empty when the user is not a member.
        """
        result = await self._session.execute(
            select(WorkspaceRoleRow)
            .join(WorkspaceMemberRoleRow, WorkspaceMemberRoleRow.role_id == WorkspaceRoleRow.role_id)
            .join(WorkspaceMemberRow, WorkspaceMemberRow.member_id == WorkspaceMemberRoleRow.member_id)
            .where(
                WorkspaceMemberRow.workspace_id == workspace_id,
                WorkspaceMemberRow.user_id == user_id,
                WorkspaceRoleRow.workspace_id == workspace_id,
            )
        )
        return [
            RoleGrant(
                role_id=row.role_id,
                name=row.name,
                authorities=frozenset(_known_authorities(row.authorities)),
                has_admin_authority=row.has_admin_authority,
            )
            for row in result.scalars().all()
        ]


def _known_authorities(values: list[str] | None) -> list[Authority]:
    # Names no longer in the enum are skipped.
    known = []
    for value in values or []:
        try:
            known.append(Authority(value))
        except ValueError:
            continue
    return known
