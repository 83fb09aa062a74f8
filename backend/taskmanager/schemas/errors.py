"""Error payload schema used in OpenAPI response declarations."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Body of every non-2xx API response."""

    error: str = Field(
        description="HTTP reason phrase or a specific machine-readable code.",
        examples=["Not Found", "INVALID_LIST", "USER_EXISTS"],
    )
    message: str = Field(
        description="Human-readable explanation safe to show to end users.",
        examples=["Task not found"],
    )
    details: dict[str, object] | None = Field(
        default=None,
        description="Optional extra context, e.g. per-field validation messages.",
        examples=[{"name": "Name is required"}],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
