"""AI priority suggestion, decision and history endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from taskmanager.api.deps import AUTH_DEP, OPENROUTER_DEP, SESSION_DEP
from taskmanager.schemas.ai_interactions import (
    AIDecisionRecord,
    AIInteractionPage,
    AIInteractionRead,
    AIInteractionsQuery,
    AISuggestion,
    AISuggestRequest,
)
from taskmanager.schemas.errors import ErrorResponse
from taskmanager.services import ai_interactions as ai_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.core.auth import AuthContext
    from taskmanager.services.openrouter import OpenRouterService

router = APIRouter(tags=["ai"])
NOT_FOUND_RESPONSE = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


@router.post(
    "/ai/suggest",
    response_model=AISuggestion,
    responses={
        **NOT_FOUND_RESPONSE,
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
)
async def suggest_priority(
    payload: AISuggestRequest,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    client: OpenRouterService = OPENROUTER_DEP,
) -> AISuggestion:
    """Suggest a priority for a task; the interaction is saved when `task_id` is set."""
    return await ai_service.suggest_priority(
        session,
        client,
        user_id=auth.user_id,
        payload=payload,
    )


@router.get(
    "/tasks/{task_id}/ai-interactions",
    response_model=AIInteractionPage,
    responses=NOT_FOUND_RESPONSE,
)
async def list_task_interactions(
    task_id: UUID,
    query: Annotated[AIInteractionsQuery, Query()],
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> AIInteractionPage:
    return await ai_service.list_interactions_for_task(
        session,
        user_id=auth.user_id,
        task_id=task_id,
        query=query,
    )


@router.patch(
    "/ai-interactions/{interaction_id}",
    response_model=AIInteractionRead,
    responses={**NOT_FOUND_RESPONSE, status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
)
async def record_decision(
    interaction_id: UUID,
    payload: AIDecisionRecord,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> AIInteractionRead:
    """Record whether the suggestion was accepted, modified or rejected."""
    interaction = await ai_service.record_decision(
        session,
        user_id=auth.user_id,
        interaction_id=interaction_id,
        payload=payload,
    )
    return AIInteractionRead.model_validate(interaction, from_attributes=True)
