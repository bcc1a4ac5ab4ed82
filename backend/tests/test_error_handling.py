# ruff: noqa: INP001, S101
from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from starlette.requests import Request

from webhook_inspector.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _get_request_id,
    _json_safe,
    install_error_handling,
)
from webhook_inspector.services.webhooks.exceptions import (
    DuplicateIdError,
    EmptySelectionError,
    GenerationFailedError,
    NoMatchingRecordsError,
    StoreUnavailableError,
    WebhookError,
    WebhookNotFoundError,
    map_webhook_error_to_http_exception,
)


def test_request_validation_error_includes_request_id():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/needs-int")
    def needs_int(limit: int) -> dict[str, int]:
        return {"limit": limit}

    client = TestClient(app)
    resp = client.get("/needs-int?limit=abc")

    assert resp.status_code == 422
    body = resp.json()
    assert isinstance(body.get("detail"), list)
    assert isinstance(body.get("request_id"), str) and body["request_id"]
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_http_exception_includes_request_id():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/nope")
    def nope() -> None:
        raise HTTPException(status_code=404, detail="nope")

    client = TestClient(app)
    resp = client.get("/nope")

    assert resp.status_code == 404
    body = resp.json()
    assert body["detail"] == "nope"
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_webhook_error_maps_to_policy_status_and_structured_detail():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/missing")
    def missing() -> None:
        raise WebhookNotFoundError("0190c0de-0000-7000-8000-000000000000")

    client = TestClient(app)
    resp = client.get("/missing")

    assert resp.status_code == 404
    body = resp.json()
    assert body["detail"] == {
        "code": "not_found",
        "message": "Webhook not found: 0190c0de-0000-7000-8000-000000000000",
    }
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_webhook_error_policy_table_covers_every_code():
    cases: list[tuple[WebhookError, int, str]] = [
        (StoreUnavailableError("down"), 503, "store_unavailable"),
        (WebhookNotFoundError("x"), 404, "not_found"),
        (DuplicateIdError("x"), 409, "duplicate_id"),
        (EmptySelectionError(), 400, "empty_selection"),
        (NoMatchingRecordsError(), 404, "no_matching_records"),
        (GenerationFailedError("timeout"), 502, "generation_failed"),
    ]

    for exc, status_code, code in cases:
        mapped = map_webhook_error_to_http_exception(exc)
        assert mapped.status_code == status_code
        assert mapped.detail["code"] == code


def test_webhook_error_without_reason_uses_policy_message():
    mapped = map_webhook_error_to_http_exception(EmptySelectionError())

    assert mapped.detail == {"code": "empty_selection", "message": "Select at least one webhook"}


def test_unhandled_exception_returns_500_with_request_id():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/boom")
    def boom() -> None:
        raise RuntimeError("boom")

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/boom")

    assert resp.status_code == 500
    body = resp.json()
    assert body["detail"] == "Internal Server Error"
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_response_validation_error_returns_500_with_request_id():
    class Out(BaseModel):
        name: str = Field(min_length=1)

    app = FastAPI()
    install_error_handling(app)

    @app.get("/bad", response_model=Out)
    def bad() -> dict[str, str]:
        return {"name": ""}

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/bad")

    assert resp.status_code == 500
    body = resp.json()
    assert body["detail"] == "Internal Server Error"
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_client_provided_request_id_is_preserved():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/needs-int")
    def needs_int(limit: int) -> dict[str, int]:
        return {"limit": limit}

    client = TestClient(app)
    resp = client.get("/needs-int?limit=abc", headers={REQUEST_ID_HEADER: "  req-123  "})

    assert resp.status_code == 422
    body = resp.json()
    assert body["request_id"] == "req-123"
    assert resp.headers.get(REQUEST_ID_HEADER) == "req-123"


def test_get_request_id_returns_none_for_missing_or_invalid_state() -> None:
    req = Request({"type": "http", "headers": [], "state": {}})
    assert _get_request_id(req) is None

    req = Request({"type": "http", "headers": [], "state": {"request_id": 123}})
    assert _get_request_id(req) is None

    req = Request({"type": "http", "headers": [], "state": {"request_id": ""}})
    assert _get_request_id(req) is None


def test_error_payload_omits_request_id_when_none() -> None:
    assert _error_payload(detail="x", request_id=None) == {"detail": "x"}


def test_json_safe_decodes_bytes_and_stringifies_unknown_values() -> None:
    payload = {"raw": b"\xffok", "items": (1, {2}), "obj": object}

    safe = _json_safe(payload)

    assert safe["raw"] == "�ok"
    assert safe["items"] == [1, [2]]
    assert safe["obj"] == str(object)
