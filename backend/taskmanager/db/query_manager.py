"""Small chainable query helpers exposed as `Model.objects`."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import func
from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class ModelQuery(Generic[ModelT]):
    """Immutable select builder bound to one model class."""

    model: type[ModelT]
    statement: SelectOfScalar[ModelT]

    def filter(self, *criteria: Any) -> ModelQuery[ModelT]:
        return replace(self, statement=self.statement.where(*criteria))

    def filter_by(self, **kwargs: Any) -> ModelQuery[ModelT]:
        return replace(self, statement=self.statement.filter_by(**kwargs))

    def order_by(self, *ordering: Any) -> ModelQuery[ModelT]:
        return replace(self, statement=self.statement.order_by(*ordering))

    def offset(self, offset: int) -> ModelQuery[ModelT]:
        return replace(self, statement=self.statement.offset(offset))

    def limit(self, limit: int) -> ModelQuery[ModelT]:
        return replace(self, statement=self.statement.limit(limit))

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement)).first()

    async def count(self, session: AsyncSession) -> int:
        """Count matching rows, ignoring ordering and pagination."""
        inner = self.statement.order_by(None).limit(None).offset(None).subquery()
        result = await session.exec(select(func.count()).select_from(inner))
        return int(result.one())

    async def exists(self, session: AsyncSession) -> bool:
        return await self.limit(1).first(session) is not None


class ModelManager(Generic[ModelT]):
    """Entry point for building queries against one model."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> ModelQuery[ModelT]:
        return ModelQuery(self.model, select(self.model))

    def by_id(self, obj_id: UUID) -> ModelQuery[ModelT]:
        id_column = getattr(self.model, "id")
        return self.all().filter(col(id_column) == obj_id)

    def filter(self, *criteria: Any) -> ModelQuery[ModelT]:
        return self.all().filter(*criteria)

    def filter_by(self, **kwargs: Any) -> ModelQuery[ModelT]:
        return self.all().filter_by(**kwargs)


class ManagerDescriptor:
    """Class-level descriptor returning a `ModelManager` for the owner class."""

    def __get__(self, instance: object, owner: type[Any]) -> ModelManager[Any]:
        return ModelManager(owner)
