# ruff: noqa: INP001
"""Account provider against a fresh database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi import HTTPException

from taskmanager.models.profiles import Profile
from taskmanager.models.users import User
from taskmanager.services import auth_provider

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import async_sessionmaker
    from sqlmodel.ext.asyncio.session import AsyncSession


@pytest.mark.asyncio
async def test_sign_up_on_empty_database_creates_user_then_profile(
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    async with session_maker() as session:
        user = await auth_provider.sign_up(
            session,
            email=" Kim@Example.com",
            password="long-enough-1",
        )

    async with session_maker() as session:
        stored = await User.objects.by_id(user.id).first(session)
        profile = await Profile.objects.by_id(user.id).first(session)

    assert stored is not None
    assert stored.email == "kim@example.com"
    assert stored.password_hash != "long-enough-1"
    assert profile is not None
    assert profile.active_list_id is None
    assert profile.onboarding_version == 1


@pytest.mark.asyncio
async def test_sign_up_twice_is_user_exists(
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    async with session_maker() as session:
        await auth_provider.sign_up(session, email="kim@example.com", password="long-enough-1")

    async with session_maker() as session:
        with pytest.raises(HTTPException) as exc_info:
            await auth_provider.sign_up(session, email="KIM@example.com", password="other-pass-2")

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == {
        "error": "USER_EXISTS",
        "message": "An account with this email already exists",
    }


@pytest.mark.asyncio
async def test_sign_in_after_sign_up(session_maker: async_sessionmaker[AsyncSession]) -> None:
    async with session_maker() as session:
        created = await auth_provider.sign_up(
            session,
            email="kim@example.com",
            password="long-enough-1",
        )

    async with session_maker() as session:
        user = await auth_provider.sign_in(
            session,
            email="Kim@example.com",
            password="long-enough-1",
        )
        with pytest.raises(HTTPException) as exc_info:
            await auth_provider.sign_in(session, email="kim@example.com", password="wrong-pass")

    assert user.id == created.id
    assert exc_info.value.status_code == 401
