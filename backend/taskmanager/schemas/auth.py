"""Schemas for registration, login and password reset."""

from __future__ import annotations

from uuid import UUID

from pydantic import EmailStr, Field, ValidationInfo, field_validator
from sqlmodel import SQLModel

from taskmanager.schemas.validators import custom_error

LOGIN_PASSWORD_MIN_LENGTH = 6
REGISTER_PASSWORD_MIN_LENGTH = 8
PASSWORD_RESET_MESSAGE = "If an account with this email exists, we'll send a reset link."


class LoginRequest(SQLModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        if len(value) < LOGIN_PASSWORD_MIN_LENGTH:
            raise custom_error(
                f"Password must be at least {LOGIN_PASSWORD_MIN_LENGTH} characters",
            )
        return value


class RegisterRequest(SQLModel):
    email: EmailStr
    password: str
    confirm_password: str
    accepted_terms: bool = Field(default=False, validate_default=True)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        if len(value) < REGISTER_PASSWORD_MIN_LENGTH:
            raise custom_error(
                f"Password must be at least {REGISTER_PASSWORD_MIN_LENGTH} characters",
            )
        return value

    @field_validator("accepted_terms")
    @classmethod
    def _validate_terms(cls, value: bool) -> bool:
        if value is not True:
            raise custom_error("You must accept the terms")
        return value

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and value != password:
            raise custom_error("Passwords must match")
        return value


class ForgotPasswordRequest(SQLModel):
    email: EmailStr


class AuthUser(SQLModel):
    id: UUID
    email: str


class RegisterResponse(SQLModel):
    user: AuthUser
    message: str = "Registration successful"


class LoginResponse(SQLModel):
    user: AuthUser
    redirect_to: str = "/app"
    access_token: str
    token_type: str = "bearer"


class PasswordResetResponse(SQLModel):
    success: bool = True
    message: str = Field(default=PASSWORD_RESET_MESSAGE)
