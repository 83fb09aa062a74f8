"""Reusable FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from taskmanager.core.auth import get_auth_context
from taskmanager.db.session import get_session
from taskmanager.services.openrouter import OpenRouterErrorCode, OpenRouterService

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)

AI_NOT_CONFIGURED_MESSAGE = "AI service is not configured"


def get_openrouter_service(request: Request) -> OpenRouterService:
    """Return the gateway client created at startup, or 503 when AI is disabled."""
    client = getattr(request.app.state, "openrouter", None)
    if not isinstance(client, OpenRouterService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": OpenRouterErrorCode.INVALID_CONFIG.value,
                "message": AI_NOT_CONFIGURED_MESSAGE,
            },
        )
    return client


OPENROUTER_DEP = Depends(get_openrouter_service)
