"""Persistence operations for tasks: filtering, ordering, updates and bulk reorder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from taskmanager.core.logging import get_logger
from taskmanager.core.time import utcnow
from taskmanager.db import crud
from taskmanager.models.ai_interactions import AIInteraction
from taskmanager.models.tasks import Task, TaskStatus
from taskmanager.schemas.common import PaginationMeta
from taskmanager.schemas.tasks import TaskPage, TaskRead, TaskReorderResult
from taskmanager.services.lists import get_list_or_404

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.db.query_manager import ModelQuery
    from taskmanager.schemas.tasks import TaskCreate, TaskReorder, TasksQuery, TaskUpdate

logger = get_logger(__name__)

TASK_NOT_FOUND = "Task not found"
SORT_ORDER_CONFLICT = "Sort order already exists in this list"
REORDER_TASKS_NOT_FOUND = "One or more tasks not found in the specified list"

_SORT_COLUMNS = {
    "priority": Task.priority,
    "sort_order": Task.sort_order,
    "created_at": Task.created_at,
}


def _sort_order_conflict() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SORT_ORDER_CONFLICT)


async def get_task_or_404(session: AsyncSession, *, user_id: UUID, task_id: UUID) -> Task:
    task = await Task.owned_by_id(user_id, task_id).first(session)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


def _apply_filters(query: ModelQuery[Task], params: TasksQuery) -> ModelQuery[Task]:
    if params.status is not None:
        query = query.filter(col(Task.status) == params.status)
    if params.priority is not None:
        query = query.filter(col(Task.priority) == params.priority)
    if params.search:
        pattern = f"%{params.search.lower()}%"
        query = query.filter(
            or_(
                func.lower(col(Task.title)).like(pattern),
                func.lower(func.coalesce(col(Task.description), "")).like(pattern),
            ),
        )
    return query


async def list_tasks(
    session: AsyncSession,
    *,
    user_id: UUID,
    list_id: UUID,
    params: TasksQuery,
) -> TaskPage:
    """Return one filtered, sorted page of a list's tasks."""
    await get_list_or_404(session, user_id=user_id, list_id=list_id)
    query = _apply_filters(Task.owned_by(user_id).filter_by(list_id=list_id), params)
    total = await query.count(session)
    sort_column = col(_SORT_COLUMNS[params.sort])
    ordering = sort_column.desc() if params.order == "desc" else sort_column.asc()
    rows = (
        await query.order_by(ordering, col(Task.sort_order).asc())
        .offset(params.offset)
        .limit(params.limit)
        .all(session)
    )
    return TaskPage(
        data=[TaskRead.model_validate(row, from_attributes=True) for row in rows],
        pagination=PaginationMeta(total=total, limit=params.limit, offset=params.offset),
    )


async def _next_sort_order(session: AsyncSession, *, list_id: UUID) -> int:
    statement = select(func.max(Task.sort_order)).where(col(Task.list_id) == list_id)
    current = (await session.exec(statement)).one()
    return int(current or 0) + 1


async def create_task(
    session: AsyncSession,
    *,
    user_id: UUID,
    list_id: UUID,
    payload: TaskCreate,
) -> Task:
    """Append a new todo task at the end of the list."""
    await get_list_or_404(session, user_id=user_id, list_id=list_id)
    now = utcnow()
    task = Task(
        user_id=user_id,
        list_id=list_id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        status=TaskStatus.TODO,
        sort_order=await _next_sort_order(session, list_id=list_id),
        created_at=now,
        updated_at=now,
    )
    try:
        return await crud.save(session, task)
    except IntegrityError:
        # Another request appended to the same list first.
        await session.rollback()
        raise _sort_order_conflict() from None


async def update_task(
    session: AsyncSession,
    *,
    user_id: UUID,
    task_id: UUID,
    payload: TaskUpdate,
) -> Task:
    """Apply a partial update; completion state drives `done_at`."""
    updates: dict[str, Any] = payload.model_dump(exclude_unset=True)
    task = await get_task_or_404(session, user_id=user_id, task_id=task_id)

    new_order = updates.get("sort_order")
    if new_order is not None and new_order != task.sort_order:
        # Best effort only; the unique constraint below is what actually holds.
        taken = await Task.objects.filter_by(list_id=task.list_id, sort_order=new_order).filter(
            col(Task.id) != task.id,
        ).exists(session)
        if taken:
            raise _sort_order_conflict()

    now = utcnow()
    if updates.get("status") == TaskStatus.DONE:
        updates["done_at"] = task.done_at if task.status == TaskStatus.DONE else now
    elif updates.get("status") == TaskStatus.TODO:
        updates["done_at"] = None
    updates["updated_at"] = now
    try:
        return await crud.patch(session, task, updates)
    except IntegrityError:
        await session.rollback()
        logger.info("tasks.update.sort_order_conflict", extra={"task_id": str(task_id)})
        raise _sort_order_conflict() from None


async def delete_task(session: AsyncSession, *, user_id: UUID, task_id: UUID) -> None:
    task = await get_task_or_404(session, user_id=user_id, task_id=task_id)
    await crud.delete_where(
        session,
        AIInteraction,
        col(AIInteraction.task_id) == task.id,
        commit=False,
    )
    await crud.delete(session, task)


async def reorder_tasks(
    session: AsyncSession,
    *,
    user_id: UUID,
    list_id: UUID,
    payload: TaskReorder,
) -> TaskReorderResult:
    """Assign new sort orders to a batch of tasks in one transaction.

    Moved rows are first parked on unique negative orders so that swapping
    two positions never trips the `(list_id, sort_order)` constraint.
    """
    await get_list_or_404(session, user_id=user_id, list_id=list_id)
    requested = {item.id: item.sort_order for item in payload.task_orders}
    tasks = (
        await Task.owned_by(user_id)
        .filter_by(list_id=list_id)
        .filter(col(Task.id).in_(list(requested)))
        .all(session)
    )
    if len(tasks) != len(requested):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=REORDER_TASKS_NOT_FOUND)

    now = utcnow()
    try:
        for index, task in enumerate(tasks, start=1):
            task.sort_order = -index
            session.add(task)
        await session.flush()
        for task in tasks:
            task.sort_order = requested[task.id]
            task.updated_at = now
            session.add(task)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(
            "tasks.reorder.conflict",
            extra={"list_id": str(list_id), "count": len(requested)},
        )
        raise _sort_order_conflict() from None
    return TaskReorderResult(success=True, updated_count=len(tasks))
