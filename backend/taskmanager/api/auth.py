"""Registration, login, logout and password reset endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Response, status

from taskmanager.api.deps import SESSION_DEP
from taskmanager.core.auth import ACCESS_TOKEN_COOKIE, create_access_token
from taskmanager.core.config import settings
from taskmanager.schemas.auth import (
    AuthUser,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetResponse,
    RegisterRequest,
    RegisterResponse,
)
from taskmanager.schemas.common import OkResponse
from taskmanager.schemas.errors import ErrorResponse
from taskmanager.services import auth_provider

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/auth", tags=["auth"])
LOGIN_REDIRECT = "/app"
RESET_PASSWORD_PATH = "/reset-password"


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = SESSION_DEP,
) -> RegisterResponse:
    user = await auth_provider.sign_up(session, email=payload.email, password=payload.password)
    return RegisterResponse(user=AuthUser(id=user.id, email=user.email))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = SESSION_DEP,
) -> LoginResponse:
    """Exchange credentials for a session token, also set as an HTTP-only cookie."""
    user = await auth_provider.sign_in(session, email=payload.email, password=payload.password)
    token = create_access_token(user.id)
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        token,
        max_age=settings.auth_token_ttl_minutes * 60,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )
    return LoginResponse(
        user=AuthUser(id=user.id, email=user.email),
        redirect_to=LOGIN_REDIRECT,
        access_token=token,
    )


@router.post("/logout", response_model=OkResponse)
async def logout(response: Response) -> OkResponse:
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    return OkResponse()


@router.post("/forgot-password", response_model=PasswordResetResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: AsyncSession = SESSION_DEP,
) -> PasswordResetResponse:
    """Always answers with the same message, whether or not the account exists."""
    await auth_provider.request_password_reset(
        session,
        email=payload.email,
        redirect_to=f"{settings.site_url.rstrip('/')}{RESET_PASSWORD_PATH}",
    )
    return PasswordResetResponse()
