"""Task endpoints: per-list listing and creation, updates, deletion and reordering."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from taskmanager.api.deps import AUTH_DEP, SESSION_DEP
from taskmanager.schemas.common import OkResponse
from taskmanager.schemas.errors import ErrorResponse
from taskmanager.schemas.tasks import (
    TaskCreate,
    TaskPage,
    TaskRead,
    TaskReorder,
    TaskReorderResult,
    TasksQuery,
    TaskUpdate,
)
from taskmanager.services import tasks as task_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.core.auth import AuthContext

router = APIRouter(tags=["tasks"])
NOT_FOUND_RESPONSE = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
CONFLICT_RESPONSE = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}


@router.get("/lists/{list_id}/tasks", response_model=TaskPage, responses=NOT_FOUND_RESPONSE)
async def list_tasks(
    list_id: UUID,
    params: Annotated[TasksQuery, Query()],
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskPage:
    """Filter, search, sort and page through a list's tasks."""
    return await task_service.list_tasks(
        session,
        user_id=auth.user_id,
        list_id=list_id,
        params=params,
    )


@router.post(
    "/lists/{list_id}/tasks",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
)
async def create_task(
    list_id: UUID,
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    task = await task_service.create_task(
        session,
        user_id=auth.user_id,
        list_id=list_id,
        payload=payload,
    )
    return TaskRead.model_validate(task, from_attributes=True)


@router.post(
    "/lists/{list_id}/tasks/reorder",
    response_model=TaskReorderResult,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
)
async def reorder_tasks(
    list_id: UUID,
    payload: TaskReorder,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskReorderResult:
    """Move several tasks at once; all updates apply or none do."""
    return await task_service.reorder_tasks(
        session,
        user_id=auth.user_id,
        list_id=list_id,
        payload=payload,
    )


@router.patch(
    "/tasks/{task_id}",
    response_model=TaskRead,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    task = await task_service.update_task(
        session,
        user_id=auth.user_id,
        task_id=task_id,
        payload=payload,
    )
    return TaskRead.model_validate(task, from_attributes=True)


@router.delete("/tasks/{task_id}", response_model=OkResponse, responses=NOT_FOUND_RESPONSE)
async def delete_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    await task_service.delete_task(session, user_id=auth.user_id, task_id=task_id)
    return OkResponse()
