"""Project models — unit of configuration management within a workspace."""

from enum import StrEnum
from uuid import UUID

from pydantic import Field

from src.models.common import CellarBase, UserSummary, UTCTimestamp, UUIDv7


class ProjectSortField(StrEnum):
    NAME = "name"
    DESCRIPTION = "description"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class Project(CellarBase):
    project_id: UUIDv7
    workspace_id: UUID
    name: str
    description: str | None = None
    default_role_id: UUID | None = None
    last_updated_by_id: UUID | None = None
    last_updated_by: UserSummary | None = None
    created_at: UTCTimestamp
    updated_at: UTCTimestamp


class CreateProject(CellarBase):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)


class UpdateProject(CellarBase):
    """Partial update. ``None`` on any field means "leave unchanged"."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
