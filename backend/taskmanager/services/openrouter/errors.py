"""Error taxonomy for the LLM gateway client."""

from __future__ import annotations

from enum import Enum


class OpenRouterErrorCode(str, Enum):
    """Closed set of failure kinds raised by `OpenRouterService`."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    RATE_LIMITED = "RATE_LIMITED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    INVALID_CONFIG = "INVALID_CONFIG"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE_CODES = frozenset(
    {
        OpenRouterErrorCode.RATE_LIMITED,
        OpenRouterErrorCode.SERVICE_UNAVAILABLE,
        OpenRouterErrorCode.TIMEOUT,
        OpenRouterErrorCode.NETWORK_ERROR,
    },
)
CONFIG_ERROR_CODES = frozenset(
    {
        OpenRouterErrorCode.UNAUTHORIZED,
        OpenRouterErrorCode.INSUFFICIENT_CREDITS,
        OpenRouterErrorCode.INVALID_CONFIG,
    },
)
_STATUS_CODES: dict[int, OpenRouterErrorCode] = {
    400: OpenRouterErrorCode.BAD_REQUEST,
    401: OpenRouterErrorCode.UNAUTHORIZED,
    402: OpenRouterErrorCode.INSUFFICIENT_CREDITS,
    429: OpenRouterErrorCode.RATE_LIMITED,
    500: OpenRouterErrorCode.SERVICE_UNAVAILABLE,
    502: OpenRouterErrorCode.SERVICE_UNAVAILABLE,
    503: OpenRouterErrorCode.SERVICE_UNAVAILABLE,
}


def error_code_for_status(status_code: int) -> OpenRouterErrorCode:
    """Classify a non-2xx upstream status."""
    return _STATUS_CODES.get(status_code, OpenRouterErrorCode.UNKNOWN_ERROR)


class OpenRouterError(Exception):
    """Single error type for every gateway failure."""

    def __init__(
        self,
        message: str,
        code: OpenRouterErrorCode,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    @property
    def is_retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    @property
    def is_config_error(self) -> bool:
        return self.code in CONFIG_ERROR_CODES

    def __repr__(self) -> str:
        return (
            f"OpenRouterError(code={self.code.value!r}, status_code={self.status_code!r}, "
            f"message={self.message!r})"
        )
