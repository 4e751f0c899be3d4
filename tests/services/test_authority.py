"""Tests for AuthorityResolver.

Missing resources surface as NotFoundError before any authority check;
existing resources the caller cannot touch surface as ForbiddenError.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from src.models.common import Authority
from src.models.workspace import ALL_AUTHORITIES
from src.repositories.workspace import (
    UserRepository,
    WorkspaceMemberRepository,
    WorkspaceRepository,
    WorkspaceRoleRepository,
)
from src.services.authority import AuthorityResolver
from src.services.errors import ForbiddenError, NotFoundError


class TestPermissions:

    @pytest.mark.anyio
    async def test_admin_role_has_everything(self, db_session: AsyncSession, tenant) -> None:
        resolver = AuthorityResolver(db_session)
        assert await resolver.permissions(tenant.admin_id, tenant.workspace_id) == ALL_AUTHORITIES

    @pytest.mark.anyio
    async def test_viewer_has_listed_authorities(self, db_session: AsyncSession, tenant) -> None:
        resolver = AuthorityResolver(db_session)
        perms = await resolver.permissions(tenant.viewer_id, tenant.workspace_id)
        assert perms == {Authority.READ_PROJECT, Authority.READ_ENVIRONMENT}

    @pytest.mark.anyio
    async def test_non_member_has_nothing(self, db_session: AsyncSession, tenant) -> None:
        resolver = AuthorityResolver(db_session)
        assert await resolver.permissions(tenant.outsider_id, tenant.workspace_id) == frozenset()

    @pytest.mark.anyio
    async def test_roles_union(self, db_session: AsyncSession, tenant) -> None:
        user = await UserRepository(db_session).create(user_id=uuid7(), email="multi@example.com")
        roles = WorkspaceRoleRepository(db_session)
        a = await roles.create(
            role_id=uuid7(), workspace_id=tenant.workspace_id, name="Deleter",
            authorities=[Authority.DELETE_ENVIRONMENT],
        )
        b = await roles.create(
            role_id=uuid7(), workspace_id=tenant.workspace_id, name="Reader",
            authorities=[Authority.READ_ENVIRONMENT],
        )
        await WorkspaceMemberRepository(db_session).add(
            member_id=uuid7(), workspace_id=tenant.workspace_id,
            user_id=user.user_id, role_ids=[a.role_id, b.role_id],
        )
        perms = await AuthorityResolver(db_session).permissions(user.user_id, tenant.workspace_id)
        assert perms == {Authority.DELETE_ENVIRONMENT, Authority.READ_ENVIRONMENT}

    @pytest.mark.anyio
    async def test_membership_is_per_workspace(self, db_session: AsyncSession, tenant) -> None:
        other = await WorkspaceRepository(db_session).create(
            workspace_id=uuid7(), name="Other", owner_id=tenant.admin_id,
        )
        perms = await AuthorityResolver(db_session).permissions(
            tenant.admin_id, other.workspace_id,
        )
        assert perms == frozenset()

    @pytest.mark.anyio
    async def test_unknown_authority_names_are_skipped(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        user = await UserRepository(db_session).create(user_id=uuid7(), email="legacy@example.com")
        role = await WorkspaceRoleRepository(db_session).create(
            role_id=uuid7(), workspace_id=tenant.workspace_id, name="Legacy",
        )
        role.authorities = ["READ_ENVIRONMENT", "LAUNCH_ROCKETS"]
        await WorkspaceMemberRepository(db_session).add(
            member_id=uuid7(), workspace_id=tenant.workspace_id,
            user_id=user.user_id, role_ids=[role.role_id],
        )
        grants = await WorkspaceMemberRepository(db_session).role_grants(
            tenant.workspace_id, user.user_id,
        )
        assert [g.authorities for g in grants] == [frozenset({Authority.READ_ENVIRONMENT})]


class TestResolve:

    @pytest.mark.anyio
    async def test_environment_returns_owning_project(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        env, project = await AuthorityResolver(db_session).environment(
            tenant.viewer_id, tenant.default_environment_id, Authority.READ_ENVIRONMENT,
        )
        assert env.environment_id == tenant.default_environment_id
        assert project.project_id == tenant.project_id

    @pytest.mark.anyio
    async def test_missing_environment_is_not_found(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        with pytest.raises(NotFoundError):
            await AuthorityResolver(db_session).environment(
                tenant.outsider_id, uuid7(), Authority.READ_ENVIRONMENT,
            )

    @pytest.mark.anyio
    async def test_missing_project_is_not_found(self, db_session: AsyncSession, tenant) -> None:
        with pytest.raises(NotFoundError):
            await AuthorityResolver(db_session).project(
                tenant.admin_id, uuid7(), Authority.READ_PROJECT,
            )

    @pytest.mark.anyio
    async def test_missing_workspace_is_not_found(self, db_session: AsyncSession, tenant) -> None:
        with pytest.raises(NotFoundError):
            await AuthorityResolver(db_session).workspace(
                tenant.admin_id, uuid7(), Authority.READ_WORKSPACE,
            )

    @pytest.mark.anyio
    async def test_missing_authority_is_forbidden(
        self, db_session: AsyncSession, tenant,
    ) -> None:
        with pytest.raises(ForbiddenError, match="DELETE_ENVIRONMENT"):
            await AuthorityResolver(db_session).environment(
                tenant.editor_id, tenant.default_environment_id, Authority.DELETE_ENVIRONMENT,
            )

    @pytest.mark.anyio
    async def test_outsider_is_forbidden(self, db_session: AsyncSession, tenant) -> None:
        with pytest.raises(ForbiddenError):
            await AuthorityResolver(db_session).project(
                tenant.outsider_id, tenant.project_id, Authority.READ_PROJECT,
            )

    @pytest.mark.anyio
    async def test_admin_passes_any_check(self, db_session: AsyncSession, tenant) -> None:
        workspace = await AuthorityResolver(db_session).workspace(
            tenant.admin_id, tenant.workspace_id, Authority.DELETE_WORKSPACE,
        )
        assert workspace.name == "Acme"
