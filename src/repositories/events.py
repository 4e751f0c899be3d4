"""Append-only audit event repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import EventRow


class EventRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, event_id: UUID, source: str, triggerer: str,
                     severity: str, type: str, title: str, timestamp: datetime,
                     description: str | None = None, metadata: dict | None = None,
                     triggered_by_id: UUID | None = None,
                     workspace_id: UUID | None = None,
                     project_id: UUID | None = None,
                     environment_id: UUID | None = None) -> EventRow:
        row = EventRow(
            event_id=event_id,
            source=source,
            triggerer=triggerer,
            severity=severity,
            type=type,
            title=title,
            description=description,
            metadata_json=metadata or {},
            timestamp=timestamp,
            triggered_by_id=triggered_by_id,
            workspace_id=workspace_id,
            project_id=project_id,
            environment_id=environment_id,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_type(self, type: str) -> list[EventRow]:
        result = await self._session.execute(
            select(EventRow).where(EventRow.type == type).order_by(EventRow.timestamp)
        )
        return list(result.scalars().all())

    async def get_by_project(self, project_id: UUID) -> list[EventRow]:
        result = await self._session.execute(
            select(EventRow).where(EventRow.project_id == project_id).order_by(EventRow.timestamp)
        )
        return list(result.scalars().all())
