"""Async client for an OpenRouter-compatible chat-completions endpoint.

The client sends exactly one HTTP request per call and never retries. Every
failure surfaces as `OpenRouterError`; callers decide whether to retry by
looking at `error.is_retryable`.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import httpx

from taskmanager.core.logging import get_logger
from taskmanager.services.openrouter.errors import (
    OpenRouterError,
    OpenRouterErrorCode,
    error_code_for_status,
)
from taskmanager.services.openrouter.types import (
    ChatOptions,
    ChatResponse,
    JsonSchema,
    OpenRouterConfig,
    ResponseFormat,
    TokenUsage,
)

if TYPE_CHECKING:
    from taskmanager.core.config import Settings

logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"
# Greedy: spans from the first "{" to the last "}" in the content.
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class OpenRouterService:
    """Chat-completions client with a typed error taxonomy."""

    def __init__(
        self,
        config: OpenRouterConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.api_key or not config.api_key.strip():
            raise OpenRouterError("API key is required", OpenRouterErrorCode.INVALID_CONFIG)
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OpenRouterService:
        if not settings.openrouter_api_key:
            raise OpenRouterError(
                "OPENROUTER_API_KEY environment variable is not set",
                OpenRouterErrorCode.INVALID_CONFIG,
            )
        config = OpenRouterConfig(
            api_key=settings.openrouter_api_key,
            default_model=settings.openrouter_model,
            default_timeout=settings.openrouter_timeout_seconds,
            site_url=settings.site_url,
            site_name=settings.site_name,
            base_url=settings.openrouter_base_url,
        )
        return cls(config, transport=transport)

    @property
    def default_model(self) -> str:
        return self._config.default_model

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.api_key}",
            "HTTP-Referer": self._config.site_url,
            "X-Title": self._config.site_name,
        }

    def build_request_body(self, options: ChatOptions) -> dict[str, Any]:
        """Serialize options, leaving out every optional field that is unset."""
        body: dict[str, Any] = {
            "model": options.model or self._config.default_model,
            "messages": [message.to_payload() for message in options.messages],
        }
        optional_fields = {
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }
        body.update({key: value for key, value in optional_fields.items() if value is not None})
        if options.response_format is not None:
            body["response_format"] = options.response_format.to_payload()
        return body

    async def chat(self, options: ChatOptions) -> ChatResponse:
        """Send one completion request and return parsed content plus usage."""
        body = self.build_request_body(options)
        timeout = options.timeout if options.timeout is not None else self._config.default_timeout
        try:
            payload = await self._execute(body, timeout)
            content = _extract_content(payload)
            parsed = (
                _parse_json_content(content) if options.response_format is not None else content
            )
        except OpenRouterError as exc:
            logger.warning(
                "openrouter.request.failed",
                extra={
                    "code": exc.code.value,
                    "status_code": exc.status_code,
                    "model": body["model"],
                },
            )
            raise
        return ChatResponse(
            content=parsed,
            model=str(payload.get("model") or body["model"]),
            usage=_parse_usage(payload.get("usage")),
        )

    async def chat_with_schema(
        self,
        options: ChatOptions,
        *,
        schema: JsonSchema,
        schema_name: str,
    ) -> ChatResponse:
        """Like `chat`, but always requests strict structured output."""
        response_format = ResponseFormat(name=schema_name, schema=schema, strict=True)
        return await self.chat(replace(options, response_format=response_format))

    async def _execute(self, body: dict[str, Any], timeout: float) -> dict[str, Any]:
        try:
            response = await asyncio.wait_for(
                self._client.post(
                    CHAT_COMPLETIONS_PATH,
                    json=body,
                    headers=self.build_headers(),
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise OpenRouterError("Request timed out", OpenRouterErrorCode.TIMEOUT) from exc
        except httpx.HTTPError as exc:
            raise OpenRouterError("Network error", OpenRouterErrorCode.NETWORK_ERROR) from exc
        except Exception as exc:
            raise OpenRouterError(
                "Unexpected error while calling the API",
                OpenRouterErrorCode.UNKNOWN_ERROR,
            ) from exc

        if not response.is_success:
            raise _http_error(response)

        try:
            payload = response.json()
        except ValueError as exc:
            raise OpenRouterError(
                "Response body is not valid JSON",
                OpenRouterErrorCode.PARSE_ERROR,
                response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise OpenRouterError(
                "Response body is not a JSON object",
                OpenRouterErrorCode.PARSE_ERROR,
                response.status_code,
            )
        return payload


def _http_error(response: httpx.Response) -> OpenRouterError:
    message = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            message = error["message"]
    return OpenRouterError(
        message,
        error_code_for_status(response.status_code),
        response.status_code,
    )


def _extract_content(payload: dict[str, Any]) -> str:
    choices = payload.get("choices")
    content: object = None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict):
            content = message.get("content")
    if not isinstance(content, str) or not content:
        raise OpenRouterError("Empty response from API", OpenRouterErrorCode.EMPTY_RESPONSE)
    return content


def _parse_json_content(content: str) -> Any:
    """Decode JSON content, falling back to the outermost `{...}` span."""
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass
    match = _JSON_OBJECT_RE.search(content)
    if match is None:
        raise OpenRouterError("Response is not valid JSON", OpenRouterErrorCode.PARSE_ERROR)
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise OpenRouterError(
            "Failed to parse JSON response",
            OpenRouterErrorCode.PARSE_ERROR,
        ) from exc


def _parse_usage(raw: object) -> TokenUsage:
    if not isinstance(raw, dict):
        return TokenUsage()

    def _count(key: str) -> int:
        value = raw.get(key)
        return value if isinstance(value, int) and not isinstance(value, bool) else 0

    return TokenUsage(
        prompt_tokens=_count("prompt_tokens"),
        completion_tokens=_count("completion_tokens"),
        total_tokens=_count("total_tokens"),
    )
