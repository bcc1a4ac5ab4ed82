"""Turn one inbound HTTP exchange into a persisted webhook record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from webhook_inspector.core.ids import default_id_generator, timestamp_of
from webhook_inspector.core.logging import get_logger
from webhook_inspector.models.webhooks import Webhook
from webhook_inspector.services.webhooks.exceptions import (
    CaptureFailedError,
    DuplicateIdError,
    StoreUnavailableError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from starlette.requests import Request

    from webhook_inspector.core.ids import MonotonicIdGenerator
    from webhook_inspector.services.webhooks.store import WebhookStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class CapturedRequest:
    """Raw inbound request as received, before it becomes a record."""

    method: str
    path_name: str
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] | None = None
    ip: str | None = None
    content_type: str | None = None
    body: bytes = b""

    @classmethod
    async def from_request(cls, request: Request, *, capture_prefix: str) -> CapturedRequest:
        """Read the full request, stripping `capture_prefix` from the path."""
        body = await request.body()
        path = request.url.path
        if path.startswith(capture_prefix):
            path = path[len(capture_prefix) :]
        if not path.startswith("/"):
            path = f"/{path}"
        # Header names are kept as the ASGI server delivered them.
        headers = join_repeated(
            (key.decode("latin-1"), value.decode("latin-1"))
            for key, value in request.scope.get("headers", [])
        )
        query_params = join_repeated(request.query_params.multi_items()) or None
        client = request.client
        return cls(
            method=request.method.upper(),
            path_name=path,
            headers=headers,
            query_params=query_params,
            ip=client.host if client else None,
            content_type=request.headers.get("content-type"),
            body=body,
        )


REPEATED_VALUE_SEPARATOR = ", "


def join_repeated(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse name/value pairs, joining repeated names in arrival order."""
    joined: dict[str, str] = {}
    for name, value in pairs:
        if name in joined:
            joined[name] = f"{joined[name]}{REPEATED_VALUE_SEPARATOR}{value}"
        else:
            joined[name] = value
    return joined


def decode_body(raw: bytes) -> str | None:
    """Decode body bytes without losing any of them; empty bodies become None."""
    if not raw:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def build_webhook(
    captured: CapturedRequest,
    *,
    status_code: int,
    ids: MonotonicIdGenerator = default_id_generator,
) -> Webhook:
    """Build the record for `captured`, assigning its id now."""
    webhook_id = ids.next()
    body = decode_body(captured.body)
    return Webhook(
        id=webhook_id,
        method=captured.method,
        path_name=captured.path_name,
        ip=captured.ip,
        status_code=status_code,
        content_type=captured.content_type,
        content_length=len(body.encode("utf-8")) if body is not None else 0,
        query_params=dict(captured.query_params) if captured.query_params else None,
        headers=dict(captured.headers),
        body=body,
        created_at=timestamp_of(webhook_id),
    )


async def capture_webhook(
    store: WebhookStore,
    captured: CapturedRequest,
    *,
    status_code: int,
    ids: MonotonicIdGenerator = default_id_generator,
) -> Webhook:
    """Persist `captured` with exactly one insert; no retries."""
    webhook = build_webhook(captured, status_code=status_code, ids=ids)
    try:
        await store.insert(webhook)
    except (StoreUnavailableError, DuplicateIdError) as exc:
        logger.error(
            "webhook.capture.failed",
            extra={"webhook_id": str(webhook.id), "error": str(exc)},
        )
        raise CaptureFailedError(str(exc)) from exc
    logger.info(
        "webhook.capture.stored",
        extra={
            "webhook_id": str(webhook.id),
            "method": webhook.method,
            "path_name": webhook.path_name,
            "content_length": webhook.content_length,
        },
    )
    return webhook
