"""Built-in account provider: sign-up, sign-in and password reset dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError

from taskmanager.core.auth import hash_password, verify_password
from taskmanager.core.logging import get_logger
from taskmanager.core.time import utcnow
from taskmanager.models.profiles import Profile
from taskmanager.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

USER_EXISTS_CODE = "USER_EXISTS"
USER_EXISTS_MESSAGE = "An account with this email already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

# Verified against when the email is unknown, so both failure paths cost the same.
_DUMMY_PASSWORD_HASH = hash_password("not-a-real-password")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _user_exists() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"error": USER_EXISTS_CODE, "message": USER_EXISTS_MESSAGE},
    )


async def sign_up(session: AsyncSession, *, email: str, password: str) -> User:
    """Create a user and its profile in one transaction."""
    normalized = normalize_email(email)
    if await User.objects.filter_by(email=normalized).exists(session):
        raise _user_exists()
    now = utcnow()
    user = User(
        email=normalized,
        password_hash=hash_password(password),
        created_at=now,
        updated_at=now,
    )
    try:
        # No relationship links the two tables; the user row must exist first.
        session.add(user)
        await session.flush()
        session.add(Profile(id=user.id, created_at=now, updated_at=now))
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise _user_exists() from None
    await session.refresh(user)
    logger.info("auth.sign_up.completed", extra={"user_id": str(user.id)})
    return user


async def sign_in(session: AsyncSession, *, email: str, password: str) -> User:
    """Return the user for valid credentials; every failure looks the same."""
    user = await User.objects.filter_by(email=normalize_email(email)).first(session)
    password_hash = user.password_hash if user is not None else _DUMMY_PASSWORD_HASH
    if not verify_password(password, password_hash) or user is None:
        logger.info("auth.sign_in.failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS_MESSAGE,
        )
    return user


async def send_password_reset(user: User, *, redirect_to: str) -> None:
    """Deliver a reset link.

    No mail transport is wired in; the request is logged for operators.
    """
    logger.info(
        "auth.password_reset.dispatched",
        extra={"user_id": str(user.id), "redirect_to": redirect_to},
    )


async def request_password_reset(
    session: AsyncSession,
    *,
    email: str,
    redirect_to: str,
) -> None:
    """Start a password reset. Never raises and never reveals whether the account exists."""
    try:
        user = await User.objects.filter_by(email=normalize_email(email)).first(session)
        if user is None:
            logger.info("auth.password_reset.unknown_email")
            return
        await send_password_reset(user, redirect_to=redirect_to)
    except Exception:
        logger.exception("auth.password_reset.failed")
