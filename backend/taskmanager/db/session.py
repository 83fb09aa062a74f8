"""Engine construction, per-request sessions, and create-all schema setup."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import URL, event, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmanager import models as _models
from taskmanager.core.config import settings
from taskmanager.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Table metadata must be populated before create_all runs.
_MODEL_REGISTRY = _models


def _async_url(database_url: str) -> URL:
    """Pin bare Postgres URLs to the psycopg async driver."""
    url = make_url(database_url)
    if url.drivername in {"postgresql", "postgres"}:
        url = url.set(drivername="postgresql+psycopg")
    return url


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection: object, _record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine(database_url: str) -> AsyncEngine:
    """Build an async engine for the given URL."""
    url = _async_url(database_url)
    kwargs: dict[str, object] = {}
    if url.get_backend_name() != "sqlite":
        kwargs["pool_pre_ping"] = True
    engine = create_async_engine(url, **kwargs)
    _enable_sqlite_foreign_keys(engine)
    return engine


async_engine: AsyncEngine = create_engine(settings.database_url)
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
logger = get_logger(__name__)


async def create_schema(engine: AsyncEngine) -> None:
    """Create every registered table that does not exist yet."""
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)


async def init_db() -> None:
    """Initialize the database schema when auto-create is enabled."""
    if not settings.db_auto_create:
        logger.info("db.schema.create_skipped")
        return
    await create_schema(async_engine)
    logger.info("db.schema.ready")


async def _discard_open_transaction(session: AsyncSession) -> None:
    """Roll back whatever a request left uncommitted."""
    if not session.in_transaction():
        return
    try:
        await session.rollback()
    except SQLAlchemyError:
        logger.exception("db.session.rollback_failed")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; uncommitted work never outlives it."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await _discard_open_transaction(session)
