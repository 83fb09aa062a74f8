"""AI priority suggestions: prompt building, gateway call, persistence and decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final
from uuid import uuid4

from fastapi import HTTPException, status
from sqlmodel import col

from taskmanager.core.logging import get_logger
from taskmanager.core.time import utcnow
from taskmanager.db import crud
from taskmanager.models.ai_interactions import AIDecision, AIInteraction
from taskmanager.schemas.ai_interactions import (
    AIInteractionPage,
    AIInteractionRead,
    AISuggestion,
)
from taskmanager.schemas.common import PaginationMeta
from taskmanager.services.openrouter import ChatMessage, ChatOptions, OpenRouterError
from taskmanager.services.prompts import hash_prompt, sanitize_prompt_input
from taskmanager.services.tasks import get_task_or_404

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskmanager.schemas.ai_interactions import (
        AIDecisionRecord,
        AIInteractionsQuery,
        AISuggestRequest,
    )
    from taskmanager.services.openrouter import OpenRouterService

logger = get_logger(__name__)

AI_UNAVAILABLE_MESSAGE: Final[str] = "AI service temporarily unavailable"
INTERACTION_NOT_FOUND: Final[str] = "AI interaction not found"
ALREADY_DECIDED: Final[str] = "Decision already recorded for this interaction"

PRIORITY_SCHEMA_NAME: Final[str] = "task_priority_suggestion"
JUSTIFICATION_TAGS: Final[tuple[str, ...]] = (
    "deadline",
    "impact",
    "complexity",
    "stakeholders",
    "dependencies",
    "risk",
)
JUSTIFICATION_MAX_LENGTH: Final[int] = 300
DEFAULT_SUGGESTED_PRIORITY: Final[int] = 2
NO_DESCRIPTION: Final[str] = "No description provided"
NO_JUSTIFICATION: Final[str] = "No justification provided"
SUGGEST_TEMPERATURE: Final[float] = 0.3
SUGGEST_MAX_TOKENS: Final[int] = 500

PRIORITY_SUGGESTION_SCHEMA: Final[dict[str, Any]] = {
    "type": "object",
    "properties": {
        "priority": {"type": "integer", "enum": [1, 2, 3]},
        "justification": {"type": "string"},
        "tags": {
            "type": "array",
            "items": {"type": "string", "enum": list(JUSTIFICATION_TAGS)},
        },
    },
    "required": ["priority", "justification", "tags"],
    "additionalProperties": False,
}


def build_priority_prompt(title: str, description: str | None) -> str:
    """Render the suggestion prompt from sanitized task text."""
    safe_title = sanitize_prompt_input(title, max_length=200)
    safe_description = sanitize_prompt_input(description or "", max_length=500) or NO_DESCRIPTION
    return (
        "You are a task management assistant. Analyze the task below and suggest a "
        "priority (1=low, 2=medium, 3=high).\n\n"
        f"Title: {safe_title}\n"
        f"Description: {safe_description}\n\n"
        "Respond with JSON:\n"
        '{\n  "priority": <1|2|3>,\n'
        f'  "justification": "<short justification, at most {JUSTIFICATION_MAX_LENGTH} '
        'characters>",\n'
        '  "tags": ["<tag>", ...]\n}\n\n'
        f"Available tags: {', '.join(JUSTIFICATION_TAGS)}"
    )


def normalize_suggestion(parsed: object) -> tuple[int, str, list[str]]:
    """Coerce model output into `(priority, justification, tags)`."""
    data = parsed if isinstance(parsed, dict) else {}
    priority = data.get("priority")
    if isinstance(priority, bool) or priority not in (1, 2, 3):
        priority = DEFAULT_SUGGESTED_PRIORITY
    justification = data.get("justification")
    if isinstance(justification, str):
        justification = justification[:JUSTIFICATION_MAX_LENGTH]
    else:
        justification = NO_JUSTIFICATION
    raw_tags = data.get("tags")
    tags = (
        [tag for tag in raw_tags if isinstance(tag, str) and tag in JUSTIFICATION_TAGS]
        if isinstance(raw_tags, list)
        else []
    )
    return int(priority), justification, tags


async def suggest_priority(
    session: AsyncSession,
    client: OpenRouterService,
    *,
    user_id: UUID,
    payload: AISuggestRequest,
) -> AISuggestion:
    """Ask the gateway for a priority; persist the interaction for saved tasks."""
    if payload.task_id is not None:
        await get_task_or_404(session, user_id=user_id, task_id=payload.task_id)

    prompt = build_priority_prompt(payload.title, payload.description)
    prompt_hash = hash_prompt(prompt)
    options = ChatOptions(
        messages=[ChatMessage(role="user", content=prompt)],
        temperature=SUGGEST_TEMPERATURE,
        max_tokens=SUGGEST_MAX_TOKENS,
    )
    try:
        response = await client.chat_with_schema(
            options,
            schema=PRIORITY_SUGGESTION_SCHEMA,
            schema_name=PRIORITY_SCHEMA_NAME,
        )
    except OpenRouterError as exc:
        logger.warning(
            "ai.suggest.failed",
            extra={
                "code": exc.code.value,
                "status_code": exc.status_code,
                "retryable": exc.is_retryable,
                "prompt_hash": prompt_hash,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "message": AI_UNAVAILABLE_MESSAGE,
                "details": {"code": exc.code.value, "retryable": exc.is_retryable},
            },
        ) from exc

    priority, justification, tags = normalize_suggestion(response.content)
    now = utcnow()
    interaction_id = uuid4()
    if payload.task_id is not None:
        interaction = await crud.save(
            session,
            AIInteraction(
                id=interaction_id,
                user_id=user_id,
                task_id=payload.task_id,
                model=response.model,
                prompt_hash=prompt_hash,
                suggested_priority=priority,
                justification=justification,
                justification_tags=tags,
                created_at=now,
            ),
        )
        now = interaction.created_at
    logger.info(
        "ai.suggest.completed",
        extra={
            "persisted": payload.task_id is not None,
            "model": response.model,
            "prompt_hash": prompt_hash,
            "total_tokens": response.usage.total_tokens,
        },
    )
    return AISuggestion(
        interaction_id=interaction_id,
        suggested_priority=priority,
        justification=justification,
        justification_tags=tags,
        model=response.model,
        created_at=now,
    )


async def record_decision(
    session: AsyncSession,
    *,
    user_id: UUID,
    interaction_id: UUID,
    payload: AIDecisionRecord,
) -> AIInteraction:
    """Record accept/modify/reject once; a second decision is a conflict."""
    interaction = await AIInteraction.owned_by_id(user_id, interaction_id).first(session)
    if interaction is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=INTERACTION_NOT_FOUND)
    if interaction.decision is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ALREADY_DECIDED)

    decision = AIDecision(payload.decision)
    return await crud.patch(
        session,
        interaction,
        {
            "decision": int(decision),
            "decided_at": utcnow(),
            "final_priority": (
                payload.final_priority if decision == AIDecision.MODIFIED else None
            ),
            "rejected_reason": (
                payload.rejected_reason if decision == AIDecision.REJECTED else None
            ),
        },
    )


async def list_interactions_for_task(
    session: AsyncSession,
    *,
    user_id: UUID,
    task_id: UUID,
    query: AIInteractionsQuery,
) -> AIInteractionPage:
    await get_task_or_404(session, user_id=user_id, task_id=task_id)
    base = AIInteraction.owned_by(user_id).filter_by(task_id=task_id)
    total = await base.count(session)
    rows = (
        await base.order_by(col(AIInteraction.created_at).desc(), col(AIInteraction.id))
        .offset(query.offset)
        .limit(query.limit)
        .all(session)
    )
    return AIInteractionPage(
        data=[AIInteractionRead.model_validate(row, from_attributes=True) for row in rows],
        pagination=PaginationMeta(total=total, limit=query.limit, offset=query.offset),
    )
