"""Password hashing, session tokens, and the authenticated-user dependency."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from taskmanager.core.config import settings
from taskmanager.core.logging import get_logger
from taskmanager.db.session import get_session
from taskmanager.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)

ACCESS_TOKEN_COOKIE = "access_token"
TOKEN_ALGORITHM = "HS256"
AUTH_REQUIRED_MESSAGE = "Authentication required"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass
class AuthContext:
    """Authenticated user resolved from the session token."""

    user: User

    @property
    def user_id(self) -> UUID:
        return self.user.id


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: UUID, *, now: datetime | None = None) -> str:
    """Issue a signed token whose subject is the user id."""
    issued_at = now or datetime.now(UTC)
    claims = {
        "sub": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(minutes=settings.auth_token_ttl_minutes)).timestamp()),
    }
    return jwt.encode(claims, settings.auth_secret_key, algorithm=TOKEN_ALGORITHM)


def decode_access_token(token: str) -> UUID | None:
    """Return the user id carried by a valid token, else None."""
    try:
        claims = jwt.decode(token, settings.auth_secret_key, algorithms=[TOKEN_ALGORITHM])
    except JWTError:
        return None
    subject = claims.get("sub")
    if not isinstance(subject, str):
        return None
    try:
        return UUID(subject)
    except ValueError:
        return None


def _extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    if credentials is not None and credentials.credentials.strip():
        return credentials.credentials.strip()
    cookie = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if cookie and cookie.strip():
        return cookie.strip()
    return None


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=AUTH_REQUIRED_MESSAGE,
    )


async def get_auth_context_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext | None:
    """Resolve the caller from a bearer header or session cookie, if any."""
    token = _extract_token(request, credentials)
    if token is None:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        logger.info("auth.token.invalid", extra={"path": request.url.path})
        return None
    user = await User.objects.by_id(user_id).first(session)
    if user is None:
        logger.info("auth.token.unknown_user", extra={"user_id": str(user_id)})
        return None
    return AuthContext(user=user)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the caller or fail with 401."""
    auth = await get_auth_context_optional(request, credentials, session)
    if auth is None:
        raise _unauthorized()
    return auth
