"""Generic write helpers shared by services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlmodel import SQLModel

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def save(session: AsyncSession, obj: ModelT, *, commit: bool = True) -> ModelT:
    """Add `obj`, then commit and refresh it (or just flush when `commit=False`)."""
    session.add(obj)
    if not commit:
        await session.flush()
        return obj
    await session.commit()
    await session.refresh(obj)
    return obj


async def patch(
    session: AsyncSession,
    obj: ModelT,
    updates: Mapping[str, Any],
    *,
    commit: bool = True,
) -> ModelT:
    """Apply attribute updates to `obj` and persist them."""
    for key, value in updates.items():
        setattr(obj, key, value)
    return await save(session, obj, commit=commit)


async def delete(session: AsyncSession, obj: SQLModel, *, commit: bool = True) -> None:
    await session.delete(obj)
    if commit:
        await session.commit()
    else:
        await session.flush()


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: Any,
    commit: bool = True,
) -> None:
    """Bulk delete rows of `model` matching `criteria`."""
    await session.exec(sa_delete(model).where(*criteria))  # type: ignore[call-overload]
    if commit:
        await session.commit()


async def update_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: Any,
    commit: bool = True,
    **values: Any,
) -> None:
    """Bulk update rows of `model` matching `criteria` to `values`."""
    statement = sa_update(model).where(*criteria).values(**values)
    await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()
