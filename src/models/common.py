"""Shared types, enums, and base models used across Cellar domain models."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


# --- Reusable annotated types ---

UUIDv7 = Annotated[UUID, Field(description="Time-sortable UUID v7.")]
UTCTimestamp = Annotated[
    datetime, Field(description="UTC timezone-aware timestamp.")
]


# --- Shared enums ---


class Authority(StrEnum):
    """Single named permission flag granted through workspace roles."""

    # Workspace
    READ_WORKSPACE = "READ_WORKSPACE"
    UPDATE_WORKSPACE = "UPDATE_WORKSPACE"
    DELETE_WORKSPACE = "DELETE_WORKSPACE"
    READ_USERS = "READ_USERS"
    ADD_USER = "ADD_USER"
    REMOVE_USER = "REMOVE_USER"
    CREATE_WORKSPACE_ROLE = "CREATE_WORKSPACE_ROLE"
    READ_WORKSPACE_ROLE = "READ_WORKSPACE_ROLE"
    UPDATE_WORKSPACE_ROLE = "UPDATE_WORKSPACE_ROLE"
    DELETE_WORKSPACE_ROLE = "DELETE_WORKSPACE_ROLE"
    WORKSPACE_ADMIN = "WORKSPACE_ADMIN"

    # Project
    CREATE_PROJECT = "CREATE_PROJECT"
    READ_PROJECT = "READ_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"

    # Environment
    CREATE_ENVIRONMENT = "CREATE_ENVIRONMENT"
    READ_ENVIRONMENT = "READ_ENVIRONMENT"
    UPDATE_ENVIRONMENT = "UPDATE_ENVIRONMENT"
    DELETE_ENVIRONMENT = "DELETE_ENVIRONMENT"

    # Secret
    CREATE_SECRET = "CREATE_SECRET"
    READ_SECRET = "READ_SECRET"
    UPDATE_SECRET = "UPDATE_SECRET"
    DELETE_SECRET = "DELETE_SECRET"

    # Variable
    CREATE_VARIABLE = "CREATE_VARIABLE"
    READ_VARIABLE = "READ_VARIABLE"
    UPDATE_VARIABLE = "UPDATE_VARIABLE"
    DELETE_VARIABLE = "DELETE_VARIABLE"


class SortOrder(StrEnum):
    """Direction for sorted list endpoints."""

    ASC = "asc"
    DESC = "desc"


# --- Base model ---


class CellarBase(BaseModel):
    """Base model with common configuration for all Cellar Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
        "protected_namespaces": (),
    }


class UserSummary(CellarBase):
    """Minimal user projection attached to entities as ``last_updated_by``."""

    user_id: UUIDv7
    email: str
    name: str | None = None
