"""Request-id middleware, request logging, and uniform JSON error responses.

Every error leaving the API has the shape::

    {"error": "...", "message": "...", "details": {...}, "request_id": "..."}

`details` is omitted when there is nothing to add. Route code raises plain
`HTTPException`; its `detail` may be a message string or a dict carrying
`error`, `message` and `details` keys when a specific error code is needed.
"""

from __future__ import annotations

from http import HTTPStatus
from time import perf_counter
from typing import TYPE_CHECKING, Any, Final
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskmanager.core.config import settings
from taskmanager.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER: Final[str] = "X-Request-Id"
HEALTH_PATHS: Final[frozenset[str]] = frozenset({"/health", "/healthz", "/readyz"})
VALIDATION_FAILED_MESSAGE: Final[str] = "Validation failed"
_LOCATION_PREFIXES: Final[frozenset[str]] = frozenset({"body", "query", "path", "header", "cookie"})
_VALUE_ERROR_PREFIX: Final[str] = "Value error, "


class RequestIdMiddleware:
    """Attach a request id to every request and log request completion."""

    def __init__(self, app: ASGIApp) -> None:
        self._app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = _inbound_request_id(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        started = perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = MutableHeaders(scope=message)
                if REQUEST_ID_HEADER not in headers:
                    headers.append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self._app(scope, receive, send_with_request_id)
        finally:
            _log_request(
                scope,
                request_id=request_id,
                status_code=status_code,
                duration_ms=(perf_counter() - started) * 1000,
            )


def _inbound_request_id(scope: Scope) -> str | None:
    wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            candidate = value.decode("latin-1").strip()
            return candidate or None
    return None


def _log_request(
    scope: Scope,
    *,
    request_id: str,
    status_code: int,
    duration_ms: float,
) -> None:
    path = str(scope.get("path", ""))
    if path in HEALTH_PATHS and not settings.request_log_include_health:
        return
    extra = {
        "request_id": request_id,
        "method": scope.get("method"),
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
    threshold = settings.request_log_slow_ms
    if threshold and duration_ms >= threshold:
        logger.warning("http.request.slow", extra={**extra, "slow_threshold_ms": threshold})
        return
    logger.info("http.request.complete", extra=extra)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _json_safe(value: object) -> object:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return str(value)


def _error_payload(
    *,
    error: str,
    message: str,
    details: object | None = None,
    request_id: str | None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": error, "message": message}
    if details is not None:
        payload["details"] = _json_safe(details)
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _error_response(
    request: Request,
    *,
    status_code: int,
    error: str,
    message: str,
    details: object | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(
            error=error,
            message=message,
            details=details,
            request_id=request_id,
        ),
        headers=response_headers,
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def validation_details(errors: list[Any]) -> dict[str, str]:
    """Collapse pydantic errors into `{field: first message}`."""
    details: dict[str, str] = {}
    for item in errors:
        if not isinstance(item, dict):
            continue
        field = _field_name(tuple(item.get("loc") or ()))
        message = str(item.get("msg") or "Invalid value")
        message = message.removeprefix(_VALUE_ERROR_PREFIX)
        details.setdefault(field, message)
    return details


async def _request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return _error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        error=_reason_phrase(status.HTTP_400_BAD_REQUEST),
        message=VALIDATION_FAILED_MESSAGE,
        details=validation_details(list(exc.errors())),
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    return await _request_validation_handler(request, exc)


async def _response_validation_handler(
    request: Request,
    exc: ResponseValidationError,
) -> JSONResponse:
    logger.error(
        "http.response.validation_failed",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "errors": _json_safe(list(exc.errors())),
        },
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=_reason_phrase(status.HTTP_500_INTERNAL_SERVER_ERROR),
        message="Internal Server Error",
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    return await _response_validation_handler(request, exc)


async def _http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    error = _reason_phrase(exc.status_code)
    message = error
    details: object | None = None
    detail = exc.detail
    if isinstance(detail, dict):
        error = str(detail.get("error") or error)
        message = str(detail.get("message") or message)
        details = detail.get("details")
    elif isinstance(detail, str) and detail:
        message = detail
    return _error_response(
        request,
        status_code=exc.status_code,
        error=error,
        message=message,
        details=details,
        headers=dict(exc.headers) if exc.headers else None,
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return await _http_exception_handler(request, exc)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.request.unhandled_exception",
        extra={
            "request_id": _get_request_id(request),
            "method": request.method,
            "path": request.url.path,
        },
        exc_info=exc,
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=_reason_phrase(status.HTTP_500_INTERNAL_SERVER_ERROR),
        message="Internal Server Error",
    )


def install_error_handling(app: FastAPI) -> None:
    """Register the request-id middleware and all JSON error handlers."""
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
