"""Task list CRUD endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from taskmanager.api.deps import AUTH_DEP, SESSION_DEP
from taskmanager.schemas.common import OkResponse
from taskmanager.schemas.errors import ErrorResponse
from taskmanager.schemas.lists import ListCreate, ListPage, ListRead, ListsQuery, ListUpdate
from taskmanager.services import lists as list_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.core.auth import AuthContext

router = APIRouter(prefix="/lists", tags=["lists"])
NOT_FOUND_RESPONSE = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
CONFLICT_RESPONSE = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}


@router.get("", response_model=ListPage)
async def list_lists(
    query: Annotated[ListsQuery, Query()],
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ListPage:
    """List the caller's lists, newest first."""
    return await list_service.list_lists(session, user_id=auth.user_id, query=query)


@router.post(
    "",
    response_model=ListRead,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT_RESPONSE,
)
async def create_list(
    payload: ListCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ListRead:
    task_list = await list_service.create_list(session, user_id=auth.user_id, payload=payload)
    return ListRead.model_validate(task_list, from_attributes=True)


@router.get("/{list_id}", response_model=ListRead, responses=NOT_FOUND_RESPONSE)
async def get_list(
    list_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ListRead:
    task_list = await list_service.get_list_or_404(
        session,
        user_id=auth.user_id,
        list_id=list_id,
    )
    return ListRead.model_validate(task_list, from_attributes=True)


@router.patch(
    "/{list_id}",
    response_model=ListRead,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
)
async def update_list(
    list_id: UUID,
    payload: ListUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ListRead:
    """Rename a list."""
    task_list = await list_service.update_list(
        session,
        user_id=auth.user_id,
        list_id=list_id,
        payload=payload,
    )
    return ListRead.model_validate(task_list, from_attributes=True)


@router.delete("/{list_id}", response_model=OkResponse, responses=NOT_FOUND_RESPONSE)
async def delete_list(
    list_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    """Delete a list along with its tasks and AI interactions."""
    await list_service.delete_list(session, user_id=auth.user_id, list_id=list_id)
    return OkResponse()
