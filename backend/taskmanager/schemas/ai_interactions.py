"""Schemas for AI priority suggestions and decision recording."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator
from sqlmodel import SQLModel

from taskmanager.models.ai_interactions import AIDecision
from taskmanager.schemas.common import PaginationMeta
from taskmanager.schemas.validators import (
    choice_int,
    custom_error,
    optional_text,
    query_int,
    required_text,
)

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)
SUGGEST_TITLE_MAX_LENGTH = 200
REJECTED_REASON_MAX_LENGTH = 300
INTERACTIONS_PAGE_MAX = 50
INTERACTIONS_PAGE_DEFAULT = 10

FINAL_PRIORITY_MESSAGE = "Final priority must be 1, 2, or 3"
REJECTED_REASON_REQUIRED = "Rejected reason is required when decision is rejected"


class AISuggestRequest(SQLModel):
    """Ask for a priority suggestion; `task_id` null means "not saved yet"."""

    task_id: UUID | None = None
    title: str = Field(default=None, validate_default=True, examples=["Prepare board deck"])
    description: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: object) -> str:
        return required_text(
            value,
            max_length=SUGGEST_TITLE_MAX_LENGTH,
            required_message="Title is required",
            too_long_message=f"Title must be at most {SUGGEST_TITLE_MAX_LENGTH} characters",
        )

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: object) -> str | None:
        return optional_text(value, max_length=None, too_long_message="")


class AISuggestion(SQLModel):
    interaction_id: UUID
    suggested_priority: int
    justification: str | None
    justification_tags: list[str]
    model: str
    created_at: datetime


class AIDecisionRecord(SQLModel):
    """Decision on a suggestion.

    accepted (1) carries nothing else, modified (2) needs `final_priority`,
    rejected (3) needs `rejected_reason`.
    """

    decision: int = Field(default=None, validate_default=True, examples=[2])
    final_priority: int | None = None
    rejected_reason: str | None = None

    @field_validator("decision", mode="before")
    @classmethod
    def _validate_decision(cls, value: object) -> int:
        return choice_int(
            value,
            choices=tuple(int(item) for item in AIDecision),
            message="Decision must be 1, 2, or 3",
        )

    @model_validator(mode="after")
    def _validate_decision_fields(self) -> AIDecisionRecord:
        if self.decision == AIDecision.MODIFIED:
            if self.final_priority not in (1, 2, 3) or isinstance(self.final_priority, bool):
                raise custom_error(FINAL_PRIORITY_MESSAGE)
            if self.rejected_reason is not None:
                raise custom_error("Rejected reason must be null unless decision is rejected")
        elif self.decision == AIDecision.REJECTED:
            if self.final_priority is not None:
                raise custom_error("Final priority must be null unless decision is modified")
            if not self.rejected_reason:
                raise custom_error(REJECTED_REASON_REQUIRED)
            if len(self.rejected_reason) > REJECTED_REASON_MAX_LENGTH:
                raise custom_error(
                    f"Rejected reason must not exceed {REJECTED_REASON_MAX_LENGTH} characters",
                )
        elif self.final_priority is not None or self.rejected_reason is not None:
            raise custom_error("Accepted decisions must not carry a final priority or reason")
        return self


class AIInteractionRead(SQLModel):
    id: UUID
    task_id: UUID
    model: str
    suggested_priority: int
    justification: str | None
    justification_tags: list[str]
    decision: int | None
    decided_at: datetime | None
    final_priority: int | None
    rejected_reason: str | None
    created_at: datetime


class AIInteractionsQuery(SQLModel):
    limit: int = INTERACTIONS_PAGE_DEFAULT
    offset: int = 0

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value: object) -> int:
        return query_int(value, name="limit", minimum=1, maximum=INTERACTIONS_PAGE_MAX)

    @field_validator("offset", mode="before")
    @classmethod
    def _offset(cls, value: object) -> int:
        return query_int(
            value,
            name="offset",
            minimum=0,
            minimum_message="offset must be non-negative",
        )


class AIInteractionPage(SQLModel):
    data: list[AIInteractionRead]
    pagination: PaginationMeta
