"""Base model classes shared by all table models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Self
from uuid import UUID

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

from taskmanager.core.time import as_utc
from taskmanager.db.query_manager import ManagerDescriptor

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect

    from taskmanager.db.query_manager import ModelQuery


class UTCDateTime(TypeDecorator[datetime]):
    """`TIMESTAMP WITH TIME ZONE` that always round-trips as aware UTC.

    SQLite keeps no offset, so values read back from it are tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        return None if value is None else as_utc(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        _ = dialect
        return None if value is None else as_utc(value)


class QueryModel(SQLModel):
    """SQLModel base exposing `Model.objects` query helpers."""

    objects: ClassVar[ManagerDescriptor] = ManagerDescriptor()


class UserOwned(QueryModel):
    """Mixin for rows owned by exactly one user.

    Every read and write in the service layer goes through `owned_by`, so a
    row owned by somebody else looks exactly like a missing row.
    """

    user_id: UUID = Field(foreign_key="users.id", ondelete="CASCADE", index=True)

    @classmethod
    def owned_by(cls, user_id: UUID) -> ModelQuery[Self]:
        return cls.objects.filter_by(user_id=user_id)

    @classmethod
    def owned_by_id(cls, user_id: UUID, obj_id: UUID) -> ModelQuery[Self]:
        return cls.objects.by_id(obj_id).filter_by(user_id=user_id)
