"""Persisted AI priority suggestions and the user's decision on them."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Column
from sqlmodel import Field

from taskmanager.core.time import utcnow
from taskmanager.models.base import UTCDateTime, UserOwned

RUNTIME_ANNOTATION_TYPES = (datetime,)


class AIDecision(IntEnum):
    ACCEPTED = 1
    MODIFIED = 2
    REJECTED = 3


# Undecided rows carry no decision data; decided rows carry exactly the
# fields their decision needs.
_DECISION_CONSISTENCY = (
    "(decision IS NULL AND decided_at IS NULL"
    " AND final_priority IS NULL AND rejected_reason IS NULL)"
    " OR (decision = 1 AND decided_at IS NOT NULL"
    " AND final_priority IS NULL AND rejected_reason IS NULL)"
    " OR (decision = 2 AND decided_at IS NOT NULL"
    " AND final_priority IS NOT NULL AND rejected_reason IS NULL)"
    " OR (decision = 3 AND decided_at IS NOT NULL"
    " AND final_priority IS NULL AND rejected_reason IS NOT NULL)"
)


class AIInteraction(UserOwned, table=True):
    """One suggestion request for a task plus its eventual decision."""

    __tablename__ = "ai_interactions"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        CheckConstraint("suggested_priority BETWEEN 1 AND 3", name="ck_ai_interactions_priority"),
        CheckConstraint(
            "final_priority IS NULL OR final_priority BETWEEN 1 AND 3",
            name="ck_ai_interactions_final_priority",
        ),
        CheckConstraint(_DECISION_CONSISTENCY, name="ck_ai_interactions_decision_consistency"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", ondelete="CASCADE", index=True)
    model: str
    suggested_priority: int
    justification: str | None = Field(default=None, max_length=300)
    justification_tags: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    prompt_hash: str = Field(max_length=64)
    decision: int | None = None
    decided_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    final_priority: int | None = None
    rejected_reason: str | None = Field(default=None, max_length=300)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
