"""Secret and variable repositories with immutable version history.

Each parent owns a gap-free version sequence starting at 1. Versions are
only ever inserted; ``add_version`` assigns ``max(version) + 1``.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import SecretRow, SecretVersionRow, VariableRow, VariableVersionRow
from src.models.common import new_uuid7, utc_now


class SecretRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, secret_id: UUID, project_id: UUID, environment_id: UUID,
                     name: str, value: str, note: str | None = None,
                     created_by: UUID | None = None) -> SecretRow:
        now = utc_now()
        row = SecretRow(
            secret_id=secret_id, project_id=project_id,
            environment_id=environment_id, name=name, note=note,
            last_updated_by_id=created_by, created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        await self.add_version(secret_id, value, created_by=created_by)
        return row

    async def get(self, secret_id: UUID) -> SecretRow | None:
        return await self._session.get(SecretRow, secret_id)

    async def add_version(self, secret_id: UUID, value: str, *,
                          created_by: UUID | None = None) -> SecretVersionRow:
        result = await self._session.execute(
            select(func.max(SecretVersionRow.version)).where(
                SecretVersionRow.secret_id == secret_id,
            )
        )
        latest = result.scalar_one_or_none() or 0
        row = SecretVersionRow(
            secret_version_id=new_uuid7(),
            secret_id=secret_id,
            version=latest + 1,
            value=value,
            created_by_id=created_by,
            created_at=utc_now(),
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_versions(self, secret_id: UUID) -> list[SecretVersionRow]:
        result = await self._session.execute(
            select(SecretVersionRow)
            .where(SecretVersionRow.secret_id == secret_id)
            .order_by(SecretVersionRow.version.asc())
        )
        return list(result.scalars().all())


class VariableRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, variable_id: UUID, project_id: UUID, environment_id: UUID,
                     name: str, value: str, note: str | None = None,
                     created_by: UUID | None = None) -> VariableRow:
        now = utc_now()
        row = VariableRow(
            variable_id=variable_id, project_id=project_id,
            environment_id=environment_id, name=name, note=note,
            last_updated_by_id=created_by, created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        await self.add_version(variable_id, value, created_by=created_by)
        return row

    async def get(self, variable_id: UUID) -> VariableRow | None:
        return await self._session.get(VariableRow, variable_id)

    async def add_version(self, variable_id: UUID, value: str, *,
                          created_by: UUID | None = None) -> VariableVersionRow:
        result = await self._session.execute(
            select(func.max(VariableVersionRow.version)).where(
                VariableVersionRow.variable_id == variable_id,
            )
        )
        latest = result.scalar_one_or_none() or 0
        row = VariableVersionRow(
            variable_version_id=new_uuid7(),
            variable_id=variable_id,
            version=latest + 1,
            value=value,
            created_by_id=created_by,
            created_at=utc_now(),
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_versions(self, variable_id: UUID) -> list[VariableVersionRow]:
        result = await self._session.execute(
            select(VariableVersionRow)
            .where(VariableVersionRow.variable_id == variable_id)
            .order_by(VariableVersionRow.version.asc())
        )
        return list(result.scalars().all())
