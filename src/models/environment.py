"""Environment models — named deployment contexts within a project."""

from enum import StrEnum
from uuid import UUID

from pydantic import Field

from src.models.common import CellarBase, UserSummary, UTCTimestamp, UUIDv7


class EnvironmentSortField(StrEnum):
    """Columns an environment listing may be ordered by."""

    NAME = "name"
    DESCRIPTION = "description"
    IS_DEFAULT = "is_default"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class Environment(CellarBase):
    environment_id: UUIDv7
    project_id: UUID
    name: str
    description: str | None = None
    is_default: bool
    last_updated_by_id: UUID | None = None
    last_updated_by: UserSummary | None = None
    created_at: UTCTimestamp
    updated_at: UTCTimestamp


class CreateEnvironment(CellarBase):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    is_default: bool = False


class UpdateEnvironment(CellarBase):
    """Partial update. ``None`` on any field means "leave unchanged"."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    is_default: bool | None = None
