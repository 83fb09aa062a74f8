# ruff: noqa: INP001
"""LLM gateway client: request building, error taxonomy and response parsing."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from taskmanager.core.config import Settings
from taskmanager.services.openrouter import (
    ChatMessage,
    ChatOptions,
    OpenRouterConfig,
    OpenRouterError,
    OpenRouterErrorCode,
    OpenRouterService,
    ResponseFormat,
    error_code_for_status,
)

SCHEMA = {"type": "object", "properties": {"a": {"type": "integer"}}}


def _completion(content: object, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "gen-1",
        "model": "openai/gpt-4o-mini",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 11, "completion_tokens": 7, "total_tokens": 18},
    }
    payload.update(extra)
    return payload


def _service(handler: Any, **config: Any) -> OpenRouterService:
    return OpenRouterService(
        OpenRouterConfig(api_key="sk-test", **config),
        transport=httpx.MockTransport(handler),
    )


def _options(**kwargs: Any) -> ChatOptions:
    return ChatOptions(messages=[ChatMessage(role="user", content="hi")], **kwargs)


def test_missing_api_key_fails_at_construction() -> None:
    with pytest.raises(OpenRouterError) as exc:
        OpenRouterService(OpenRouterConfig(api_key=""))

    assert exc.value.code is OpenRouterErrorCode.INVALID_CONFIG
    assert exc.value.is_config_error
    assert not exc.value.is_retryable


def test_from_settings_requires_key() -> None:
    settings = Settings(_env_file=None, auth_secret_key="k" * 40, openrouter_api_key="  ")

    with pytest.raises(OpenRouterError) as exc:
        OpenRouterService.from_settings(settings)

    assert exc.value.code is OpenRouterErrorCode.INVALID_CONFIG


@pytest.mark.parametrize(
    ("status_code", "code"),
    [
        (400, OpenRouterErrorCode.BAD_REQUEST),
        (401, OpenRouterErrorCode.UNAUTHORIZED),
        (402, OpenRouterErrorCode.INSUFFICIENT_CREDITS),
        (429, OpenRouterErrorCode.RATE_LIMITED),
        (500, OpenRouterErrorCode.SERVICE_UNAVAILABLE),
        (502, OpenRouterErrorCode.SERVICE_UNAVAILABLE),
        (503, OpenRouterErrorCode.SERVICE_UNAVAILABLE),
        (404, OpenRouterErrorCode.UNKNOWN_ERROR),
        (504, OpenRouterErrorCode.UNKNOWN_ERROR),
    ],
)
def test_error_code_for_status(status_code: int, code: OpenRouterErrorCode) -> None:
    assert error_code_for_status(status_code) is code


def test_retryable_and_config_flags_cover_the_taxonomy() -> None:
    retryable = {
        code
        for code in OpenRouterErrorCode
        if OpenRouterError("x", code).is_retryable
    }
    config = {
        code
        for code in OpenRouterErrorCode
        if OpenRouterError("x", code).is_config_error
    }

    assert retryable == {
        OpenRouterErrorCode.RATE_LIMITED,
        OpenRouterErrorCode.SERVICE_UNAVAILABLE,
        OpenRouterErrorCode.TIMEOUT,
        OpenRouterErrorCode.NETWORK_ERROR,
    }
    assert config == {
        OpenRouterErrorCode.UNAUTHORIZED,
        OpenRouterErrorCode.INSUFFICIENT_CREDITS,
        OpenRouterErrorCode.INVALID_CONFIG,
    }


@pytest.mark.asyncio
async def test_chat_sends_headers_and_omits_unset_fields() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_completion("hello there"))

    service = _service(handler, site_url="https://tasks.example", site_name="Tasks")
    response = await service.chat(_options(temperature=0.2))
    await service.aclose()

    assert response.content == "hello there"
    assert response.model == "openai/gpt-4o-mini"
    assert response.usage.total_tokens == 18
    request = seen[0]
    assert request.method == "POST"
    assert request.url == "https://openrouter.ai/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["HTTP-Referer"] == "https://tasks.example"
    assert request.headers["X-Title"] == "Tasks"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {
        "model": "openai/gpt-4o-mini",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.2,
    }


@pytest.mark.asyncio
async def test_chat_with_schema_requests_strict_structured_output() -> None:
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_completion('{"a": 1}'))

    service = _service(handler, default_model="acme/model-1")
    response = await service.chat_with_schema(
        _options(response_format=ResponseFormat(name="other", schema={}, strict=False)),
        schema=SCHEMA,
        schema_name="answer",
    )

    assert response.content == {"a": 1}
    assert bodies[0]["model"] == "acme/model-1"
    assert bodies[0]["response_format"] == {
        "type": "json_schema",
        "json_schema": {"name": "answer", "strict": True, "schema": SCHEMA},
    }


@pytest.mark.asyncio
async def test_rate_limited_response_is_retryable() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "Slow down"}})

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.RATE_LIMITED
    assert exc.value.status_code == 429
    assert exc.value.message == "Slow down"
    assert exc.value.is_retryable
    assert not exc.value.is_config_error


@pytest.mark.asyncio
async def test_unauthorized_response_is_config_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="nope")

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.UNAUTHORIZED
    assert exc.value.message == "Unauthorized"
    assert exc.value.is_config_error
    assert not exc.value.is_retryable


@pytest.mark.asyncio
async def test_structured_output_salvages_trailing_text() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion('{"a":1} trailing text'))

    response = await _service(handler).chat(
        _options(response_format=ResponseFormat(name="answer", schema=SCHEMA)),
    )

    assert response.content == {"a": 1}


@pytest.mark.asyncio
async def test_structured_output_without_json_is_parse_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("no json here"))

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat_with_schema(_options(), schema=SCHEMA, schema_name="a")

    assert exc.value.code is OpenRouterErrorCode.PARSE_ERROR


@pytest.mark.asyncio
async def test_structured_output_with_broken_json_is_parse_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("prefix {not: json} suffix"))

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat_with_schema(_options(), schema=SCHEMA, schema_name="a")

    assert exc.value.code is OpenRouterErrorCode.PARSE_ERROR
    assert exc.value.message == "Failed to parse JSON response"


@pytest.mark.asyncio
@pytest.mark.parametrize("structured", [False, True])
@pytest.mark.parametrize("content", ["", None])
async def test_empty_content_is_empty_response(structured: bool, content: object) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion(content))

    response_format = ResponseFormat(name="a", schema=SCHEMA) if structured else None
    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options(response_format=response_format))

    assert exc.value.code is OpenRouterErrorCode.EMPTY_RESPONSE


@pytest.mark.asyncio
async def test_missing_choices_is_empty_response() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"model": "m", "choices": []})

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.EMPTY_RESPONSE


@pytest.mark.asyncio
async def test_slow_upstream_times_out() -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=_completion("late"))

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options(timeout=0.05))

    assert exc.value.code is OpenRouterErrorCode.TIMEOUT
    assert exc.value.is_retryable


@pytest.mark.asyncio
async def test_transport_timeout_is_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.TIMEOUT


@pytest.mark.asyncio
async def test_connection_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.NETWORK_ERROR
    assert exc.value.is_retryable
    assert exc.value.status_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        httpx.DecodingError("bad gzip stream"),
        httpx.TooManyRedirects("redirect loop"),
    ],
)
async def test_other_httpx_errors_are_network_errors(error: httpx.HTTPError) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise error

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.NETWORK_ERROR
    assert exc.value.__cause__ is error


@pytest.mark.asyncio
async def test_unexpected_exception_is_unknown_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        msg = "handler blew up"
        raise RuntimeError(msg)

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.UNKNOWN_ERROR
    assert not exc.value.is_retryable
    assert isinstance(exc.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_non_json_success_body_is_parse_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.PARSE_ERROR


@pytest.mark.asyncio
async def test_client_does_not_retry() -> None:
    calls = 0

    def handler(_: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, json={"error": {"message": "busy"}})

    with pytest.raises(OpenRouterError) as exc:
        await _service(handler).chat(_options())

    assert exc.value.code is OpenRouterErrorCode.SERVICE_UNAVAILABLE
    assert calls == 1


@pytest.mark.asyncio
async def test_missing_usage_defaults_to_zero() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        body = _completion("ok")
        del body["usage"]
        return httpx.Response(200, json=body)

    response = await _service(handler).chat(_options())

    assert response.usage.prompt_tokens == 0
    assert response.usage.total_tokens == 0
