"""Persistence operations for task lists, scoped to the owning user."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from taskmanager.core.logging import get_logger
from taskmanager.core.time import utcnow
from taskmanager.db import crud
from taskmanager.models.ai_interactions import AIInteraction
from taskmanager.models.lists import TaskList
from taskmanager.models.profiles import Profile
from taskmanager.models.tasks import Task
from taskmanager.schemas.common import PaginationMeta
from taskmanager.schemas.lists import ListPage, ListRead

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.schemas.lists import ListCreate, ListsQuery, ListUpdate

logger = get_logger(__name__)

LIST_NOT_FOUND = "List not found"
DUPLICATE_LIST_NAME = "A list with this name already exists"


def _duplicate_name() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_LIST_NAME)


async def get_list_or_404(session: AsyncSession, *, user_id: UUID, list_id: UUID) -> TaskList:
    task_list = await TaskList.owned_by_id(user_id, list_id).first(session)
    if task_list is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=LIST_NOT_FOUND)
    return task_list


async def _name_taken(
    session: AsyncSession,
    *,
    user_id: UUID,
    name: str,
    exclude_id: UUID | None = None,
) -> bool:
    query = TaskList.owned_by(user_id).filter_by(name=name)
    if exclude_id is not None:
        query = query.filter(col(TaskList.id) != exclude_id)
    return await query.exists(session)


async def list_lists(session: AsyncSession, *, user_id: UUID, query: ListsQuery) -> ListPage:
    """Return one page of the user's lists, newest first."""
    base = TaskList.owned_by(user_id)
    total = await base.count(session)
    rows = (
        await base.order_by(col(TaskList.created_at).desc(), col(TaskList.id))
        .offset(query.offset)
        .limit(query.limit)
        .all(session)
    )
    return ListPage(
        data=[ListRead.model_validate(row, from_attributes=True) for row in rows],
        pagination=PaginationMeta(total=total, limit=query.limit, offset=query.offset),
    )


async def create_list(session: AsyncSession, *, user_id: UUID, payload: ListCreate) -> TaskList:
    if await _name_taken(session, user_id=user_id, name=payload.name):
        logger.info("lists.create.duplicate", extra={"user_id": str(user_id)})
        raise _duplicate_name()
    now = utcnow()
    task_list = TaskList(user_id=user_id, name=payload.name, created_at=now, updated_at=now)
    try:
        return await crud.save(session, task_list)
    except IntegrityError:
        await session.rollback()
        raise _duplicate_name() from None


async def update_list(
    session: AsyncSession,
    *,
    user_id: UUID,
    list_id: UUID,
    payload: ListUpdate,
) -> TaskList:
    task_list = await get_list_or_404(session, user_id=user_id, list_id=list_id)
    if await _name_taken(session, user_id=user_id, name=payload.name, exclude_id=list_id):
        raise _duplicate_name()
    try:
        return await crud.patch(session, task_list, {"name": payload.name, "updated_at": utcnow()})
    except IntegrityError:
        await session.rollback()
        raise _duplicate_name() from None


async def delete_list(session: AsyncSession, *, user_id: UUID, list_id: UUID) -> None:
    """Delete a list together with its tasks and their AI interactions."""
    task_list = await get_list_or_404(session, user_id=user_id, list_id=list_id)
    task_ids = select(Task.id).where(col(Task.list_id) == task_list.id)
    await crud.delete_where(
        session,
        AIInteraction,
        col(AIInteraction.task_id).in_(task_ids),
        commit=False,
    )
    await crud.delete_where(session, Task, col(Task.list_id) == task_list.id, commit=False)
    await crud.update_where(
        session,
        Profile,
        col(Profile.id) == user_id,
        col(Profile.active_list_id) == task_list.id,
        active_list_id=None,
        commit=False,
    )
    await crud.delete(session, task_list)
    logger.info("lists.delete.completed", extra={"list_id": str(list_id)})
