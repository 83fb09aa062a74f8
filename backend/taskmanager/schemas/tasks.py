"""Schemas for task payloads, filters and bulk reordering."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError
from sqlmodel import SQLModel

from taskmanager.schemas.common import PaginationMeta
from taskmanager.schemas.validators import (
    choice_int,
    custom_error,
    optional_text,
    query_int,
    required_text,
    strict_int,
)

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)
TASK_TITLE_MAX_LENGTH = 500
TASK_DESCRIPTION_MAX_LENGTH = 5000
TASK_SEARCH_MAX_LENGTH = 200
TASKS_PAGE_MAX = 500
TASKS_PAGE_DEFAULT = 50
REORDER_MAX_ITEMS = 500

PRIORITY_MESSAGE = "Priority must be 1, 2, or 3"
STATUS_MESSAGE = "Status must be 1 or 2"
SORT_ORDER_MESSAGE = "Sort order must be a positive integer"

TaskSortField = Literal["priority", "sort_order", "created_at"]
SortDirection = Literal["asc", "desc"]


def _title(value: object) -> str:
    return required_text(
        value,
        max_length=TASK_TITLE_MAX_LENGTH,
        required_message="Title is required",
        too_long_message=f"Title must be at most {TASK_TITLE_MAX_LENGTH} characters",
    )


def _description(value: object) -> str | None:
    return optional_text(
        value,
        max_length=TASK_DESCRIPTION_MAX_LENGTH,
        too_long_message=(
            f"Description must be at most {TASK_DESCRIPTION_MAX_LENGTH} characters"
        ),
    )


def _sort_order(value: object) -> int:
    number = strict_int(value, message=SORT_ORDER_MESSAGE)
    if number <= 0:
        raise custom_error(SORT_ORDER_MESSAGE)
    return number


class TaskCreate(SQLModel):
    """Payload for adding a task to the end of a list."""

    title: str = Field(default=None, validate_default=True, examples=["Book flights"])
    description: str | None = None
    priority: int = Field(default=None, validate_default=True, examples=[2])

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: object) -> str:
        return _title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: object) -> str | None:
        return _description(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _validate_priority(cls, value: object) -> int:
        return choice_int(value, choices=(1, 2, 3), message=PRIORITY_MESSAGE)


class TaskUpdate(SQLModel):
    """Partial update; only fields present in the request are applied."""

    title: str | None = None
    description: str | None = None
    priority: int | None = None
    status: int | None = None
    sort_order: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: object) -> str:
        return _title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: object) -> str | None:
        return _description(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _validate_priority(cls, value: object) -> int:
        return choice_int(value, choices=(1, 2, 3), message=PRIORITY_MESSAGE)

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, value: object) -> int:
        return choice_int(value, choices=(1, 2), message=STATUS_MESSAGE)

    @field_validator("sort_order", mode="before")
    @classmethod
    def _validate_sort_order(cls, value: object) -> int:
        return _sort_order(value)


class TaskRead(SQLModel):
    """Task payload returned by task endpoints."""

    id: UUID
    list_id: UUID
    title: str
    description: str | None
    priority: int
    status: int
    sort_order: int
    done_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TasksQuery(SQLModel):
    """Filter, sort and pagination parameters for `GET /lists/{list_id}/tasks`."""

    status: int | None = None
    priority: int | None = None
    search: str | None = None
    sort: TaskSortField = "sort_order"
    order: SortDirection = "asc"
    limit: int = TASKS_PAGE_DEFAULT
    offset: int = 0

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: object) -> int | None:
        if value is None:
            return None
        try:
            return query_int(value, name="status", minimum=1, maximum=2)
        except PydanticCustomError:
            raise custom_error(STATUS_MESSAGE) from None

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: object) -> int | None:
        if value is None:
            return None
        try:
            return query_int(value, name="priority", minimum=1, maximum=3)
        except PydanticCustomError:
            raise custom_error(PRIORITY_MESSAGE) from None

    @field_validator("search", mode="before")
    @classmethod
    def _search(cls, value: object) -> str | None:
        return optional_text(
            value,
            max_length=TASK_SEARCH_MAX_LENGTH,
            too_long_message=f"search must be at most {TASK_SEARCH_MAX_LENGTH} characters",
        )

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value: object) -> int:
        return query_int(value, name="limit", minimum=1, maximum=TASKS_PAGE_MAX)

    @field_validator("offset", mode="before")
    @classmethod
    def _offset(cls, value: object) -> int:
        return query_int(
            value,
            name="offset",
            minimum=0,
            minimum_message="offset must be non-negative",
        )


class TaskPage(SQLModel):
    data: list[TaskRead]
    pagination: PaginationMeta


class TaskOrderItem(SQLModel):
    id: UUID
    sort_order: int

    @field_validator("sort_order", mode="before")
    @classmethod
    def _validate_sort_order(cls, value: object) -> int:
        return _sort_order(value)


class TaskReorder(SQLModel):
    """Bulk reorder request; rejected before any write when it repeats ids or orders."""

    task_orders: list[TaskOrderItem] = Field(default=None, validate_default=True)

    @field_validator("task_orders", mode="before")
    @classmethod
    def _validate_size(cls, value: object) -> object:
        if not isinstance(value, list) or not value:
            raise custom_error("At least one task order is required")
        if len(value) > REORDER_MAX_ITEMS:
            raise custom_error(f"Cannot reorder more than {REORDER_MAX_ITEMS} tasks at once")
        return value

    @field_validator("task_orders", mode="after")
    @classmethod
    def _validate_unique(cls, value: list[TaskOrderItem]) -> list[TaskOrderItem]:
        ids = [item.id for item in value]
        if len(set(ids)) != len(ids):
            raise custom_error("Duplicate task IDs are not allowed")
        orders = [item.sort_order for item in value]
        if len(set(orders)) != len(orders):
            raise custom_error("Duplicate sort orders are not allowed")
        return value


class TaskReorderResult(SQLModel):
    success: bool = True
    updated_count: int
