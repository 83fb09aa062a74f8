"""Request/response value types for the LLM gateway client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ChatRole = Literal["system", "user", "assistant"]
JsonSchema = dict[str, Any]

DEFAULT_MODEL = "openai/gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_SITE_URL = "https://10x-projekt.local"
DEFAULT_SITE_NAME = "10x AI Task Manager"


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ResponseFormat:
    """Structured-output constraint sent as `response_format`."""

    name: str
    schema: JsonSchema
    strict: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": self.name,
                "strict": self.strict,
                "schema": self.schema,
            },
        }


@dataclass(frozen=True)
class ChatOptions:
    """Per-call options; `None` means "not sent" for every optional field."""

    messages: list[ChatMessage]
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    response_format: ResponseFormat | None = None
    timeout: float | None = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ChatResponse:
    """Parsed completion: a string, or decoded JSON when structured output was asked for."""

    content: Any
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class OpenRouterConfig:
    api_key: str
    default_model: str = DEFAULT_MODEL
    default_timeout: float = DEFAULT_TIMEOUT_SECONDS
    site_url: str = DEFAULT_SITE_URL
    site_name: str = DEFAULT_SITE_NAME
    base_url: str = DEFAULT_BASE_URL
