"""Per-user profile holding the active list and onboarding state."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint
from sqlmodel import Field

from taskmanager.core.time import utcnow
from taskmanager.models.base import QueryModel, UTCDateTime

RUNTIME_ANNOTATION_TYPES = (datetime,)

ONBOARDING_VERSION_MAX = 32767


class Profile(QueryModel, table=True):
    """Profile keyed by the owning user's id."""

    __tablename__ = "profiles"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        CheckConstraint(
            f"onboarding_version BETWEEN 1 AND {ONBOARDING_VERSION_MAX}",
            name="ck_profiles_onboarding_version",
        ),
    )

    id: UUID = Field(foreign_key="users.id", ondelete="CASCADE", primary_key=True)
    active_list_id: UUID | None = Field(
        default=None,
        foreign_key="task_lists.id",
        ondelete="SET NULL",
    )
    onboarding_completed_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    onboarding_version: int = Field(default=1)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
