"""Task list model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from taskmanager.core.time import utcnow
from taskmanager.models.base import UTCDateTime, UserOwned

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TaskList(UserOwned, table=True):
    """Named list of tasks; names are unique per user."""

    __tablename__ = "task_lists"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_task_lists_user_id_name"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
