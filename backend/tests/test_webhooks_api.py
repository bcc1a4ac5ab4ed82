# ruff: noqa: INP001, S101
"""End-to-end tests for the capture, listing, detail, delete and generate endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from webhook_inspector.core.config import Settings
from webhook_inspector.core.error_handling import REQUEST_ID_HEADER
from webhook_inspector.core.ids import MonotonicIdGenerator
from webhook_inspector.integrations.text_generation import TextGenerationError
from webhook_inspector.main import create_app
from webhook_inspector.services.webhooks.exceptions import StoreUnavailableError
from webhook_inspector.services.webhooks.store import WebhookStore


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "capture_path": "/capture",
        "capture_status_code": 202,
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def client(store: WebhookStore, fake_generator) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(
        _settings(),
        store=store,
        text_generator=fake_generator,
        id_generator=MonotonicIdGenerator(),
    )
    transport = httpx.ASGITransport(app=app, client=("198.51.100.4", 4000))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.mark.asyncio
async def test_capture_responds_with_configured_status_and_stores_request(
    client: httpx.AsyncClient,
    store: WebhookStore,
) -> None:
    resp = await client.post(
        "/capture/webhooks/stripe?source=stripe",
        content=b'{"type":"charge.succeeded"}',
        headers={"Content-Type": "application/json", "Stripe-Signature": "t=1,v1=abc"},
    )

    assert resp.status_code == 202
    assert resp.content == b""
    (stored,) = await store.page_after(None, 10)
    assert stored.method == "POST"
    assert stored.path_name == "/webhooks/stripe"
    assert stored.ip == "198.51.100.4"
    assert stored.status_code == 202
    assert stored.query_params == {"source": "stripe"}
    assert stored.headers["stripe-signature"] == "t=1,v1=abc"
    assert stored.body == '{"type":"charge.succeeded"}'
    assert stored.content_length == len(b'{"type":"charge.succeeded"}')


@pytest.mark.asyncio
async def test_capture_accepts_any_method_and_bare_prefix(
    client: httpx.AsyncClient,
    store: WebhookStore,
) -> None:
    for method in ("GET", "PUT", "PATCH", "DELETE"):
        resp = await client.request(method, "/capture")
        assert resp.status_code == 202

    rows = await store.page_after(None, 10)
    assert [row.method for row in rows] == ["DELETE", "PATCH", "PUT", "GET"]
    assert {row.path_name for row in rows} == {"/"}


@pytest.mark.asyncio
async def test_capture_storage_failure_is_reported_not_acknowledged(
    client: httpx.AsyncClient,
    store: WebhookStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _broken_insert(_webhook: object) -> None:
        raise StoreUnavailableError("disk full")

    monkeypatch.setattr(store, "insert", _broken_insert)

    resp = await client.post("/capture/x", content=b"{}")

    assert resp.status_code == 503
    body = resp.json()
    assert body["detail"]["code"] == "capture_failed"
    assert "disk full" in body["detail"]["message"]
    assert body["request_id"] == resp.headers[REQUEST_ID_HEADER]


@pytest.mark.asyncio
async def test_listing_walks_pages_with_cursor(client: httpx.AsyncClient) -> None:
    for index in range(5):
        await client.post(f"/capture/hook/{index}", content=b"{}")

    first = (await client.get("/api/webhooks", params={"limit": 2})).json()
    second = (
        await client.get("/api/webhooks", params={"limit": 2, "cursor": first["next_cursor"]})
    ).json()
    third = (
        await client.get("/api/webhooks", params={"limit": 2, "cursor": second["next_cursor"]})
    ).json()

    paths = [item["path_name"] for page in (first, second, third) for item in page["items"]]
    assert paths == ["/hook/4", "/hook/3", "/hook/2", "/hook/1", "/hook/0"]
    assert first["next_cursor"] == first["items"][-1]["id"]
    assert third["next_cursor"] is None
    assert set(first["items"][0]) == {"id", "method", "path_name", "created_at"}


@pytest.mark.asyncio
async def test_listing_rejects_malformed_cursor_and_limit(client: httpx.AsyncClient) -> None:
    bad_cursor = await client.get("/api/webhooks", params={"cursor": "not-an-id"})
    bad_limit = await client.get("/api/webhooks", params={"limit": 0})

    assert bad_cursor.status_code == 422
    assert bad_limit.status_code == 422


@pytest.mark.asyncio
async def test_detail_and_idempotent_delete(client: httpx.AsyncClient) -> None:
    await client.put("/capture/orders", content=b"payload", headers={"X-Trace": "1"})
    listing = (await client.get("/api/webhooks")).json()
    webhook_id = listing["items"][0]["id"]

    detail = await client.get(f"/api/webhooks/{webhook_id}")
    first_delete = await client.delete(f"/api/webhooks/{webhook_id}")
    second_delete = await client.delete(f"/api/webhooks/{webhook_id}")
    missing = await client.get(f"/api/webhooks/{webhook_id}")

    assert detail.status_code == 200
    assert detail.json()["body"] == "payload"
    assert detail.json()["headers"]["x-trace"] == "1"
    assert first_delete.json() == {"ok": True}
    assert second_delete.status_code == 200
    assert second_delete.json() == {"ok": True}
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_generate_returns_code_with_201(
    client: httpx.AsyncClient,
    fake_generator,
) -> None:
    await client.post("/capture/a", content=b'{"type":"a"}')
    await client.post("/capture/b", content=b'{"type":"b"}')
    ids = [item["id"] for item in (await client.get("/api/webhooks")).json()["items"]]

    resp = await client.post("/api/generate", json={"webhook_ids": ids})

    assert resp.status_code == 201
    assert resp.json() == {"code": fake_generator.reply}
    assert '{"type":"a"}\n\n{"type":"b"}' in fake_generator.prompts[0]


@pytest.mark.asyncio
async def test_generate_error_taxonomy(
    client: httpx.AsyncClient,
    fake_generator,
) -> None:
    empty = await client.post("/api/generate", json={"webhook_ids": []})
    unknown = await client.post(
        "/api/generate",
        json={"webhook_ids": [str(MonotonicIdGenerator().next())]},
    )
    await client.post("/capture/a", content=b"{}")
    webhook_id = (await client.get("/api/webhooks")).json()["items"][0]["id"]
    fake_generator.error = TextGenerationError("upstream 500")
    failed = await client.post("/api/generate", json={"webhook_ids": [webhook_id]})

    assert (empty.status_code, empty.json()["detail"]["code"]) == (400, "empty_selection")
    assert (unknown.status_code, unknown.json()["detail"]["code"]) == (404, "no_matching_records")
    assert (failed.status_code, failed.json()["detail"]["code"]) == (502, "generation_failed")


@pytest.mark.asyncio
async def test_store_outage_during_listing_maps_to_503(
    client: httpx.AsyncClient,
    store: WebhookStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _down(*_args: object) -> list[object]:
        raise StoreUnavailableError("connection reset")

    monkeypatch.setattr(store, "page_after", _down)

    resp = await client.get("/api/webhooks")

    assert resp.status_code == 503
    assert resp.json()["detail"]["code"] == "store_unavailable"


@pytest.mark.asyncio
async def test_healthz(client: httpx.AsyncClient) -> None:
    resp = await client.get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


@pytest.mark.asyncio
async def test_capture_repeated_headers_are_joined_end_to_end(
    client: httpx.AsyncClient,
    store: WebhookStore,
) -> None:
    await client.post(
        "/capture/trace?id=1&id=2",
        content=b"{}",
        headers=[("X-Trace", "first"), ("X-Trace", "second")],
    )

    (stored,) = await store.page_after(None, 10)
    assert stored.headers["x-trace"] == "first, second"
    assert stored.query_params == {"id": "1, 2"}
