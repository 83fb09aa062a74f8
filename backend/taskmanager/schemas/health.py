"""Payload returned by `/health`, `/healthz` and `/readyz`."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class HealthStatusResponse(SQLModel):
    ok: bool = Field(
        default=True,
        description="True while the task manager API is serving requests.",
        examples=[True],
    )
