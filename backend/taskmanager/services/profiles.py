"""Profile reads and updates for the authenticated user."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status

from taskmanager.core.time import utcnow
from taskmanager.db import crud
from taskmanager.models.lists import TaskList
from taskmanager.models.profiles import Profile

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

PROFILE_NOT_FOUND = "Profile not found"
INVALID_LIST_CODE = "INVALID_LIST"
INVALID_LIST_MESSAGE = "List not found or doesn't belong to user"


async def get_profile_or_404(session: AsyncSession, *, user_id: UUID) -> Profile:
    profile = await Profile.objects.by_id(user_id).first(session)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PROFILE_NOT_FOUND)
    return profile


async def update_active_list(
    session: AsyncSession,
    *,
    user_id: UUID,
    active_list_id: UUID | None,
) -> Profile:
    """Point the profile at one of the user's lists, or clear it with None."""
    if active_list_id is not None:
        owned = await TaskList.owned_by_id(user_id, active_list_id).exists(session)
        if not owned:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": INVALID_LIST_CODE, "message": INVALID_LIST_MESSAGE},
            )
    profile = await get_profile_or_404(session, user_id=user_id)
    return await crud.patch(
        session,
        profile,
        {"active_list_id": active_list_id, "updated_at": utcnow()},
    )


async def complete_onboarding(session: AsyncSession, *, user_id: UUID, version: int) -> Profile:
    profile = await get_profile_or_404(session, user_id=user_id)
    now = utcnow()
    return await crud.patch(
        session,
        profile,
        {"onboarding_completed_at": now, "onboarding_version": version, "updated_at": now},
    )
