"""Task model with priority, status and per-list ordering."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field

from taskmanager.core.time import utcnow
from taskmanager.models.base import UTCDateTime, UserOwned

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TaskPriority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class TaskStatus(IntEnum):
    TODO = 1
    DONE = 2


class Task(UserOwned, table=True):
    """List-scoped task; `done_at` is set exactly when the task is done."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("list_id", "sort_order", name="uq_tasks_list_id_sort_order"),
        CheckConstraint("priority BETWEEN 1 AND 3", name="ck_tasks_priority"),
        CheckConstraint("status IN (1, 2)", name="ck_tasks_status"),
        CheckConstraint(
            "(status = 2 AND done_at IS NOT NULL) OR (status = 1 AND done_at IS NULL)",
            name="ck_tasks_done_at_matches_status",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    list_id: UUID = Field(foreign_key="task_lists.id", ondelete="CASCADE", index=True)
    title: str = Field(max_length=500)
    description: str | None = Field(default=None, max_length=5000)
    priority: int = Field(default=TaskPriority.MEDIUM, index=True)
    status: int = Field(default=TaskStatus.TODO, index=True)
    sort_order: int
    done_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
