"""Tests for project API endpoints."""

import pytest
from httpx import AsyncClient
from uuid_extensions import uuid7


def _as(user_id) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}


class TestProjectEndpoints:

    @pytest.mark.anyio
    async def test_create_returns_201_with_default_environment(
        self, client: AsyncClient, tenant,
    ) -> None:
        resp = await client.post(
            f"/v1/projects/{tenant.workspace_id}",
            json={"name": "billing"},
            headers=_as(tenant.admin_id),
        )
        assert resp.status_code == 201
        project_id = resp.json()["project_id"]

        envs = await client.get(
            f"/v1/environments/all/{project_id}", headers=_as(tenant.admin_id),
        )
        assert [(e["name"], e["is_default"]) for e in envs.json()] == [("Default", True)]

    @pytest.mark.anyio
    async def test_duplicate_returns_409(self, client: AsyncClient, tenant) -> None:
        resp = await client.post(
            f"/v1/projects/{tenant.workspace_id}",
            json={"name": "payments"},
            headers=_as(tenant.admin_id),
        )
        assert resp.status_code == 409

    @pytest.mark.anyio
    async def test_editor_cannot_create(self, client: AsyncClient, tenant) -> None:
        resp = await client.post(
            f"/v1/projects/{tenant.workspace_id}",
            json={"name": "billing"},
            headers=_as(tenant.editor_id),
        )
        assert resp.status_code == 403

    @pytest.mark.anyio
    async def test_update_and_get(self, client: AsyncClient, tenant) -> None:
        resp = await client.put(
            f"/v1/projects/{tenant.project_id}",
            json={"description": "card payments"},
            headers=_as(tenant.admin_id),
        )
        assert resp.status_code == 200

        resp = await client.get(f"/v1/projects/{tenant.project_id}", headers=_as(tenant.viewer_id))
        assert resp.status_code == 200
        assert resp.json()["name"] == "payments"
        assert resp.json()["description"] == "card payments"

    @pytest.mark.anyio
    async def test_list(self, client: AsyncClient, tenant) -> None:
        resp = await client.get(
            f"/v1/projects/all/{tenant.workspace_id}", headers=_as(tenant.viewer_id),
        )
        assert resp.status_code == 200
        assert [p["name"] for p in resp.json()] == ["payments"]

    @pytest.mark.anyio
    async def test_get_unknown_returns_404(self, client: AsyncClient, tenant) -> None:
        resp = await client.get(f"/v1/projects/{uuid7()}", headers=_as(tenant.admin_id))
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    @pytest.mark.anyio
    async def test_delete_returns_204_and_removes_environments(
        self, client: AsyncClient, tenant,
    ) -> None:
        resp = await client.delete(f"/v1/projects/{tenant.project_id}", headers=_as(tenant.admin_id))
        assert resp.status_code == 204

        resp = await client.get(
            f"/v1/environments/{tenant.default_environment_id}", headers=_as(tenant.admin_id),
        )
        assert resp.status_code == 404
