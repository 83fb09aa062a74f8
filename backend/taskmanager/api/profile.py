"""Profile endpoints for the authenticated user."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, status

from taskmanager.api.deps import AUTH_DEP, SESSION_DEP
from taskmanager.schemas.errors import ErrorResponse
from taskmanager.schemas.profiles import OnboardingComplete, ProfileRead, ProfileUpdate
from taskmanager.services import profiles as profile_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.core.auth import AuthContext

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get(
    "",
    response_model=ProfileRead,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def get_profile(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProfileRead:
    profile = await profile_service.get_profile_or_404(session, user_id=auth.user_id)
    return ProfileRead.model_validate(profile, from_attributes=True)


@router.patch(
    "",
    response_model=ProfileRead,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)
async def update_profile(
    payload: ProfileUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProfileRead:
    """Set or clear the active list."""
    profile = await profile_service.update_active_list(
        session,
        user_id=auth.user_id,
        active_list_id=payload.active_list_id,
    )
    return ProfileRead.model_validate(profile, from_attributes=True)


@router.post(
    "/onboarding/complete",
    response_model=ProfileRead,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def complete_onboarding(
    payload: OnboardingComplete,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProfileRead:
    profile = await profile_service.complete_onboarding(
        session,
        user_id=auth.user_id,
        version=payload.version,
    )
    return ProfileRead.model_validate(profile, from_attributes=True)
