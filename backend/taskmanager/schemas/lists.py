"""Schemas for task list create/update/read payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator
from sqlmodel import SQLModel

from taskmanager.schemas.common import PaginationMeta
from taskmanager.schemas.validators import query_int, required_text

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)
LIST_NAME_MAX_LENGTH = 100
LISTS_PAGE_MAX = 100
LISTS_PAGE_DEFAULT = 50


def _validate_name(value: object) -> str:
    return required_text(
        value,
        max_length=LIST_NAME_MAX_LENGTH,
        required_message="Name is required",
        too_long_message=f"Name must be at most {LIST_NAME_MAX_LENGTH} characters",
    )


class ListCreate(SQLModel):
    """Payload for creating a list."""

    name: str = Field(default=None, validate_default=True, examples=["Groceries"])

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: object) -> str:
        return _validate_name(value)


class ListUpdate(SQLModel):
    """Payload for renaming a list."""

    name: str = Field(default=None, validate_default=True, examples=["Work"])

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: object) -> str:
        return _validate_name(value)


class ListRead(SQLModel):
    """List payload returned by list endpoints."""

    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime


class ListsQuery(SQLModel):
    """Pagination query parameters for `GET /lists`."""

    limit: int = LISTS_PAGE_DEFAULT
    offset: int = 0

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value: object) -> int:
        return query_int(value, name="limit", minimum=1, maximum=LISTS_PAGE_MAX)

    @field_validator("offset", mode="before")
    @classmethod
    def _offset(cls, value: object) -> int:
        return query_int(
            value,
            name="offset",
            minimum=0,
            minimum_message="offset must be non-negative",
        )


class ListPage(SQLModel):
    data: list[ListRead]
    pagination: PaginationMeta
