"""Audit event side channel.

Every successful mutation records one immutable EventRecord. Recording is
fire-and-forget: ``EventEmitter.record`` only enqueues onto a bounded
queue; a background worker hands each event to the sink. A full queue or
a failing sink drops the event and logs it. Neither ever reaches the
caller, and nothing is retried.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db.tables import EnvironmentRow, ProjectRow, WorkspaceRow
from src.models.common import new_uuid7, utc_now
from src.repositories.events import EventRepository

logger = logging.getLogger(__name__)


class EventSource(StrEnum):
    WORKSPACE = "WORKSPACE"
    WORKSPACE_ROLE = "WORKSPACE_ROLE"
    PROJECT = "PROJECT"
    ENVIRONMENT = "ENVIRONMENT"
    SECRET = "SECRET"
    VARIABLE = "VARIABLE"


class EventTriggerer(StrEnum):
    USER = "USER"
    SYSTEM = "SYSTEM"


class EventSeverity(StrEnum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class EventType(StrEnum):
    WORKSPACE_CREATED = "WORKSPACE_CREATED"
    WORKSPACE_UPDATED = "WORKSPACE_UPDATED"
    WORKSPACE_DELETED = "WORKSPACE_DELETED"
    WORKSPACE_ROLE_CREATED = "WORKSPACE_ROLE_CREATED"
    WORKSPACE_ROLE_UPDATED = "WORKSPACE_ROLE_UPDATED"
    WORKSPACE_ROLE_DELETED = "WORKSPACE_ROLE_DELETED"
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    PROJECT_DELETED = "PROJECT_DELETED"
    ENVIRONMENT_ADDED = "ENVIRONMENT_ADDED"
    ENVIRONMENT_UPDATED = "ENVIRONMENT_UPDATED"
    ENVIRONMENT_DELETED = "ENVIRONMENT_DELETED"
    SECRET_ADDED = "SECRET_ADDED"
    SECRET_UPDATED = "SECRET_UPDATED"
    SECRET_DELETED = "SECRET_DELETED"
    VARIABLE_ADDED = "VARIABLE_ADDED"
    VARIABLE_UPDATED = "VARIABLE_UPDATED"
    VARIABLE_DELETED = "VARIABLE_DELETED"


@dataclass(frozen=True)
class EventRecord:
    """Immutable audit record as handed to a sink."""

    type: EventType
    source: EventSource
    title: str
    triggerer: EventTriggerer = EventTriggerer.USER
    severity: EventSeverity = EventSeverity.INFO
    description: str | None = None
    triggered_by_id: UUID | None = None
    workspace_id: UUID | None = None
    project_id: UUID | None = None
    environment_id: UUID | None = None
    metadata: dict = field(default_factory=dict)
    event_id: UUID = field(default_factory=new_uuid7)
    timestamp: datetime = field(default_factory=utc_now)


EventSink = Callable[[EventRecord], Awaitable[None]]


def scope_of(entity: Any) -> dict[str, UUID | None]:
    """Workspace / project / environment ids implied by ``entity``."""
    if isinstance(entity, EnvironmentRow):
        return {"project_id": entity.project_id, "environment_id": entity.environment_id}
    if isinstance(entity, ProjectRow):
        return {"workspace_id": entity.workspace_id, "project_id": entity.project_id}
    if isinstance(entity, WorkspaceRow):
        return {"workspace_id": entity.workspace_id}
    return {}


class EventEmitter:
    """Non-blocking dispatcher from services to an event sink."""

    def __init__(self, sink: EventSink, *, max_queue_size: int = 1000) -> None:
        self._sink = sink
        self._queue: asyncio.Queue[EventRecord] = asyncio.Queue(maxsize=max_queue_size)
        self._worker: asyncio.Task | None = None
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def record(
        self,
        *,
        type: EventType,
        source: EventSource,
        title: str,
        triggered_by: UUID | None = None,
        entity: Any = None,
        severity: EventSeverity = EventSeverity.INFO,
        description: str | None = None,
        metadata: dict | None = None,
        workspace_id: UUID | None = None,
    ) -> EventRecord:
        """Build an event and enqueue it without waiting.

        ``entity`` supplies the scope ids; ``workspace_id`` fills the
        workspace when the entity does not carry one.
        """
        scope = scope_of(entity)
        if workspace_id is not None:
            scope.setdefault("workspace_id", workspace_id)
        event = EventRecord(
            type=type,
            source=source,
            title=title,
            triggerer=EventTriggerer.USER if triggered_by is not None else EventTriggerer.SYSTEM,
            severity=severity,
            description=description,
            triggered_by_id=triggered_by,
            metadata=_jsonable(metadata or {}),
            **scope,
        )
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Event queue full, dropping %s event %s", event.type, event.event_id,
            )
        return event

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="cellar-event-worker")

    async def drain(self) -> None:
        """Wait until every queued event has been handed to the sink."""
        await self._queue.join()

    async def stop(self) -> None:
        if self._worker is None:
            return
        if self.running:
            await self.drain()
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._sink(event)
            except Exception:
                self.dropped += 1
                logger.exception("Failed to record %s event %s", event.type, event.event_id)
            finally:
                self._queue.task_done()


class DatabaseEventSink:
    """Writes each event in its own session, outside any caller transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self, event: EventRecord) -> None:
        async with self._session_factory() as session:
            await EventRepository(session).create(
                event_id=event.event_id,
                source=event.source.value,
                triggerer=event.triggerer.value,
                severity=event.severity.value,
                type=event.type.value,
                title=event.title,
                description=event.description,
                metadata=event.metadata,
                timestamp=event.timestamp,
                triggered_by_id=event.triggered_by_id,
                workspace_id=event.workspace_id,
                project_id=event.project_id,
                environment_id=event.environment_id,
            )
            await session.commit()


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value
