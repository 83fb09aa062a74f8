"""Shared response envelopes."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class OkResponse(SQLModel):
    """Success acknowledgement for operations with no resource to return."""

    success: bool = Field(default=True, examples=[True])


class PaginationMeta(SQLModel):
    """Pagination block returned next to a `data` array."""

    total: int = Field(description="Total rows matching the query.", examples=[42])
    limit: int = Field(description="Page size applied.", examples=[50])
    offset: int = Field(description="Rows skipped before this page.", examples=[0])
