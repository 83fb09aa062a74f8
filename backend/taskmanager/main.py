"""FastAPI application entrypoint and router wiring for the backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from taskmanager.api.ai import router as ai_router
from taskmanager.api.auth import router as auth_router
from taskmanager.api.lists import router as lists_router
from taskmanager.api.profile import router as profile_router
from taskmanager.api.tasks import router as tasks_router
from taskmanager.core.config import settings
from taskmanager.core.error_handling import install_error_handling
from taskmanager.core.logging import configure_logging, get_logger
from taskmanager.db.session import init_db
from taskmanager.schemas.health import HealthStatusResponse
from taskmanager.services.openrouter import OpenRouterError, OpenRouterService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "auth",
        "description": "Account registration, login/logout and password reset requests.",
    },
    {
        "name": "health",
        "description": "Service liveness and readiness checks used by infrastructure.",
    },
    {
        "name": "lists",
        "description": "Task list CRUD scoped to the authenticated user.",
    },
    {
        "name": "tasks",
        "description": "Task CRUD, filtering, search and drag-and-drop reordering.",
    },
    {
        "name": "profile",
        "description": "Active list selection and onboarding state.",
    },
    {
        "name": "ai",
        "description": "AI priority suggestions and the decisions recorded against them.",
    },
]
HEALTH_RESPONSES = {
    status.HTTP_200_OK: {
        "description": "Service is alive.",
        "content": {"application/json": {"example": {"ok": True}}},
    },
}


def build_openrouter_service() -> OpenRouterService | None:
    """Create the gateway client once, or None when no API key is configured."""
    try:
        return OpenRouterService.from_settings(settings)
    except OpenRouterError as exc:
        logger.warning("app.ai.disabled reason=%s", exc.message, extra={"code": exc.code.value})
        return None


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    """Initialize application resources before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_create=%s",
        settings.environment,
        settings.db_auto_create,
    )
    await init_db()
    client = build_openrouter_service()
    fastapi_app.state.openrouter = client
    logger.info("app.lifecycle.started ai_enabled=%s", client is not None)
    try:
        yield
    finally:
        if client is not None:
            await client.aclose()
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="AI Task Manager API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    responses=HEALTH_RESPONSES,
)
def health() -> HealthStatusResponse:
    """Lightweight liveness endpoint."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/healthz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Alias Check",
    responses=HEALTH_RESPONSES,
)
def healthz() -> HealthStatusResponse:
    """Alias liveness endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/readyz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Readiness Check",
    responses=HEALTH_RESPONSES,
)
def readyz() -> HealthStatusResponse:
    """Readiness endpoint for service orchestration checks."""
    return HealthStatusResponse(ok=True)


api = APIRouter(prefix="/api")
api.include_router(auth_router)
api.include_router(lists_router)
api.include_router(tasks_router)
api.include_router(profile_router)
api.include_router(ai_router)
app.include_router(api)

logger.debug("app.routes.registered count=%s", len(app.routes))
