# ruff: noqa: INP001
"""Settings validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from taskmanager.core.config import Settings

VALID_SECRET = "a-very-long-and-random-secret-value-0123456789"


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


def test_defaults_with_valid_secret() -> None:
    settings = _settings(auth_secret_key=VALID_SECRET)

    assert settings.openrouter_model == "openai/gpt-4o-mini"
    assert settings.openrouter_timeout_seconds == 30.0
    assert settings.openrouter_base_url == "https://openrouter.ai/api/v1"
    assert settings.log_format == "text"


@pytest.mark.parametrize("secret", ["", "short-secret", "   " + "x" * 10 + "   "])
def test_short_or_blank_secret_is_rejected(secret: str) -> None:
    with pytest.raises(ValidationError, match="AUTH_SECRET_KEY must be at least 32 characters"):
        _settings(auth_secret_key=secret)


def test_placeholder_secret_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "taskmanager.core.config.AUTH_SECRET_KEY_PLACEHOLDERS",
        frozenset({VALID_SECRET}),
    )
    with pytest.raises(ValidationError, match="non-placeholder"):
        _settings(auth_secret_key=VALID_SECRET.upper())


def test_openrouter_key_is_trimmed() -> None:
    settings = _settings(auth_secret_key=VALID_SECRET, openrouter_api_key="  sk-or-123  ")
    assert settings.openrouter_api_key == "sk-or-123"


def test_invalid_log_format_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(auth_secret_key=VALID_SECRET, log_format="xml")
