# ruff: noqa: INP001
"""Pytest configuration shared across backend tests."""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; pin deterministic values regardless of shell env.
os.environ["AUTH_SECRET_KEY"] = "test-secret-key-0123456789-abcdefghijklmnopqrstuvwxyz"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["LOG_FORMAT"] = "text"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import APIRouter, FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskmanager.api.ai import router as ai_router  # noqa: E402
from taskmanager.api.auth import router as auth_router  # noqa: E402
from taskmanager.api.lists import router as lists_router  # noqa: E402
from taskmanager.api.profile import router as profile_router  # noqa: E402
from taskmanager.api.tasks import router as tasks_router  # noqa: E402
from taskmanager.core.error_handling import install_error_handling  # noqa: E402
from taskmanager.db.session import create_engine, create_schema, get_session  # noqa: E402

SignUp = Callable[..., Awaitable[dict[str, str]]]


@pytest_asyncio.fixture
async def session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_schema(engine)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    test_app = FastAPI()
    install_error_handling(test_app)
    api = APIRouter(prefix="/api")
    for router in (auth_router, lists_router, tasks_router, profile_router, ai_router):
        api.include_router(router)
    test_app.include_router(api)
    test_app.state.openrouter = None

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    test_app.dependency_overrides[get_session] = _override_get_session
    return test_app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as http_client:
        yield http_client


@pytest.fixture
def sign_up(client: AsyncClient) -> SignUp:
    """Register and log in a user, returning bearer auth headers."""

    async def _sign_up(
        email: str = "alex@example.com",
        password: str = "correct-horse-1",
    ) -> dict[str, str]:
        registered = await client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": password,
                "confirm_password": password,
                "accepted_terms": True,
            },
        )
        assert registered.status_code == 201, registered.text
        logged_in = await client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        assert logged_in.status_code == 200, logged_in.text
        # Keep requests explicit about which user they act as.
        client.cookies.clear()
        return {"Authorization": f"Bearer {logged_in.json()['access_token']}"}

    return _sign_up
