"""LLM gateway client, value types and error taxonomy."""

from taskmanager.services.openrouter.client import OpenRouterService
from taskmanager.services.openrouter.errors import (
    OpenRouterError,
    OpenRouterErrorCode,
    error_code_for_status,
)
from taskmanager.services.openrouter.types import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    OpenRouterConfig,
    ResponseFormat,
    TokenUsage,
)

__all__ = [
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "OpenRouterConfig",
    "OpenRouterError",
    "OpenRouterErrorCode",
    "OpenRouterService",
    "ResponseFormat",
    "TokenUsage",
    "error_code_for_status",
]
