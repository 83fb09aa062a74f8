"""Schemas for profile reads, active-list updates and onboarding completion."""

from __future__ import annotations

import math
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator
from sqlmodel import SQLModel

from taskmanager.models.profiles import ONBOARDING_VERSION_MAX
from taskmanager.schemas.validators import custom_error

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ProfileRead(SQLModel):
    id: UUID
    active_list_id: UUID | None
    onboarding_completed_at: datetime | None
    onboarding_version: int
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(SQLModel):
    """Set or clear the active list. The key is required; `null` clears it."""

    active_list_id: UUID | None = Field(examples=["5f0c2a0e-4f3e-4c8a-9a55-0d7d9c1b6b1e"])

    @field_validator("active_list_id", mode="before")
    @classmethod
    def _validate_uuid(cls, value: object) -> object:
        if value is None or isinstance(value, UUID):
            return value
        if isinstance(value, str):
            try:
                return UUID(value)
            except ValueError:
                pass
        raise custom_error("Invalid UUID format")


def parse_onboarding_version(value: object) -> int:
    """Validate an onboarding version number, one message per failure kind."""
    if value is None:
        raise custom_error("Version is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise custom_error("Version must be a number")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise custom_error("Version must be an integer")
        value = int(value)
    if value <= 0:
        raise custom_error("Version must be greater than 0")
    if value > ONBOARDING_VERSION_MAX:
        raise custom_error(f"Version must be at most {ONBOARDING_VERSION_MAX}")
    return value


class OnboardingComplete(SQLModel):
    """Payload for marking onboarding as finished."""

    version: int = Field(default=None, validate_default=True, examples=[1])

    @field_validator("version", mode="before")
    @classmethod
    def _validate_version(cls, value: object) -> int:
        return parse_onboarding_version(value)
