# ruff: noqa: INP001
"""Uniform error bodies, request ids and request logs."""

from __future__ import annotations

from itertools import count

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from starlette.requests import Request

from taskmanager.core import error_handling
from taskmanager.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _get_request_id,
    _http_exception_exception_handler,
    _request_validation_exception_handler,
    _response_validation_exception_handler,
    install_error_handling,
    validation_details,
)


class _Payload(BaseModel):
    content: str


class _Named(BaseModel):
    name: str = Field(min_length=1)


def _build_app() -> FastAPI:
    app = FastAPI()
    install_error_handling(app)

    @app.get("/items")
    def list_items(limit: int) -> dict[str, int]:
        return {"limit": limit}

    @app.put("/items")
    def replace_item(payload: _Payload) -> dict[str, str]:
        return {"content": payload.content}

    @app.get("/tasks/missing")
    def missing_task() -> None:
        raise HTTPException(status_code=404, detail="Task not found")

    @app.get("/lists/invalid")
    def invalid_list() -> None:
        raise HTTPException(
            status_code=400,
            detail={"error": "INVALID_LIST", "message": "bad list", "details": {"a": 1}},
        )

    @app.get("/crash")
    def crash() -> None:
        raise RuntimeError("crash")

    @app.get("/bad-output", response_model=_Named)
    def bad_output() -> dict[str, str]:
        return {"name": ""}

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(_build_app(), raise_server_exceptions=False)


def _assert_request_id_echoed(resp) -> str:  # noqa: ANN001
    request_id = resp.json()["request_id"]
    assert isinstance(request_id, str) and request_id
    assert resp.headers.get(REQUEST_ID_HEADER) == request_id
    return request_id


def test_invalid_query_value_is_400_with_details_per_field(client: TestClient) -> None:
    resp = client.get("/items?limit=abc")

    assert resp.status_code == 400
    body = resp.json()
    assert (body["error"], body["message"]) == ("Bad Request", "Validation failed")
    assert set(body["details"]) == {"limit"}
    _assert_request_id_echoed(resp)


def test_non_json_body_is_400_not_500(client: TestClient) -> None:
    resp = client.put(
        "/items",
        content=b"plain-text-body",
        headers={"content-type": "text/plain"},
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"
    assert isinstance(resp.json()["details"], dict)
    _assert_request_id_echoed(resp)


def test_string_detail_is_the_message(client: TestClient) -> None:
    resp = client.get("/tasks/missing")

    assert resp.status_code == 404
    body = resp.json()
    assert (body["error"], body["message"]) == ("Not Found", "Task not found")
    assert "details" not in body
    _assert_request_id_echoed(resp)


def test_dict_detail_supplies_code_message_and_details(client: TestClient) -> None:
    resp = client.get("/lists/invalid")

    assert resp.status_code == 400
    body = resp.json()
    assert {key: body[key] for key in ("error", "message", "details")} == {
        "error": "INVALID_LIST",
        "message": "bad list",
        "details": {"a": 1},
    }


@pytest.mark.parametrize("path", ["/crash", "/bad-output"])
def test_server_side_failures_are_generic_500(client: TestClient, path: str) -> None:
    resp = client.get(path)

    assert resp.status_code == 500
    body = resp.json()
    assert (body["error"], body["message"]) == (
        "Internal Server Error",
        "Internal Server Error",
    )
    _assert_request_id_echoed(resp)


def test_inbound_request_id_is_trimmed_and_reused(client: TestClient) -> None:
    resp = client.get("/items?limit=abc", headers={REQUEST_ID_HEADER: "  req-123  "})

    assert resp.status_code == 400
    assert _assert_request_id_echoed(resp) == "req-123"


def test_slow_failing_request_logs_warning_with_status(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
) -> None:
    slow: list[dict[str, object]] = []
    completed: list[str] = []
    ticks = count(start=10.0, step=0.25)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(ticks))
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 100)
    monkeypatch.setattr(
        error_handling.logger,
        "warning",
        lambda message, *args, **kwargs: slow.append({"event": message, **kwargs["extra"]}),
    )
    monkeypatch.setattr(
        error_handling.logger,
        "info",
        lambda message, *args, **kwargs: completed.append(message),
    )

    resp = client.get("/tasks/missing")

    assert resp.status_code == 404
    assert resp.json()["message"] == "Task not found"
    assert len(slow) == 1
    entry = slow[0]
    assert entry["event"] == "http.request.slow"
    assert entry["status_code"] == 404
    assert entry["path"] == "/tasks/missing"
    assert entry["slow_threshold_ms"] == 100
    assert entry["duration_ms"] == 250.0
    assert entry["request_id"] == resp.headers[REQUEST_ID_HEADER]
    assert "http.request.complete" not in completed


@pytest.mark.parametrize(
    ("include_health", "expected"),
    [(False, []), (True, ["http.request.complete"])],
)
def test_health_request_logging_follows_setting(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
    include_health: bool,
    expected: list[str],
) -> None:
    logged: list[str] = []
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", include_health)
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 0)
    monkeypatch.setattr(
        error_handling.logger,
        "info",
        lambda message, *args, **kwargs: logged.append(message),
    )

    resp = client.get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers.get(REQUEST_ID_HEADER)
    assert logged == expected


@pytest.mark.parametrize(
    "state",
    [{}, {"request_id": 123}, {"request_id": ""}],
)
def test_request_id_lookup_ignores_unusable_state(state: dict[str, object]) -> None:
    assert _get_request_id(Request({"type": "http", "headers": [], "state": state})) is None


def test_error_payload_drops_unset_details_and_request_id() -> None:
    assert _error_payload(error="Not Found", message="x", request_id=None) == {
        "error": "Not Found",
        "message": "x",
    }
    assert _error_payload(
        error="CONFLICT",
        message="taken",
        details={"name": b"dup"},
        request_id="r1",
    ) == {"error": "CONFLICT", "message": "taken", "details": {"name": "dup"}, "request_id": "r1"}


def test_validation_details_keeps_first_message_per_field() -> None:
    details = validation_details(
        [
            {"loc": ("body", "name"), "msg": "Name is required"},
            {"loc": ("body", "name"), "msg": "second"},
            {"loc": ("query", "limit"), "msg": "Value error, limit must be at least 1"},
            {"loc": ("body",), "msg": "Passwords must match"},
        ],
    )

    assert details == {
        "name": "Name is required",
        "limit": "limit must be at least 1",
        "body": "Passwords must match",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("handler", "expected_type"),
    [
        (_request_validation_exception_handler, "RequestValidationError"),
        (_response_validation_exception_handler, "ResponseValidationError"),
        (_http_exception_exception_handler, "StarletteHTTPException"),
    ],
)
async def test_registered_handlers_reject_foreign_exceptions(handler, expected_type) -> None:  # noqa: ANN001
    req = Request({"type": "http", "headers": [], "state": {}})
    with pytest.raises(TypeError, match=f"Expected {expected_type}"):
        await handler(req, Exception("x"))


def test_json_safe_decodes_binary_and_stringifies_the_rest() -> None:
    class Opaque:
        def __str__(self) -> str:
            return "opaque"

    assert error_handling._json_safe(
        {"raw": b"\xff", "buf": bytearray(b"ok"), "items": (memoryview(b"a"), Opaque())},
    ) == {"raw": "�", "buf": "ok", "items": ["a", "opaque"]}
