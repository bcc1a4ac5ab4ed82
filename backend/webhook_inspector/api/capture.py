"""Ingestion endpoint recording every request under the capture prefix."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request, Response

from webhook_inspector.api.deps import get_id_generator, get_webhook_store
from webhook_inspector.core.ids import MonotonicIdGenerator
from webhook_inspector.core.logging import get_logger
from webhook_inspector.models.webhooks import Webhook
from webhook_inspector.services.webhooks.capture import CapturedRequest, capture_webhook
from webhook_inspector.services.webhooks.store import WebhookStore

logger = get_logger(__name__)

CAPTURE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
STORE_DEP = Depends(get_webhook_store)
ID_GENERATOR_DEP = Depends(get_id_generator)

# Inserts still running after their client disconnected.
_detached_captures: set[asyncio.Task[Webhook]] = set()


def _finish_detached(task: asyncio.Task[Webhook]) -> None:
    _detached_captures.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "webhook.capture.detached_failed",
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )


async def shielded_capture(
    store: WebhookStore,
    captured: CapturedRequest,
    *,
    status_code: int,
    ids: MonotonicIdGenerator,
) -> Webhook:
    """Run the insert so that cancelling the caller does not abort it."""
    task = asyncio.ensure_future(
        capture_webhook(store, captured, status_code=status_code, ids=ids),
    )
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        _detached_captures.add(task)
        task.add_done_callback(_finish_detached)
        raise


def build_capture_router(capture_path: str, status_code: int) -> APIRouter:
    """Return a router capturing any method at `capture_path` and below it."""
    router = APIRouter(prefix=capture_path, tags=["capture"])

    async def capture(
        request: Request,
        store: WebhookStore = STORE_DEP,
        ids: MonotonicIdGenerator = ID_GENERATOR_DEP,
    ) -> Response:
        captured = await CapturedRequest.from_request(request, capture_prefix=capture_path)
        await shielded_capture(store, captured, status_code=status_code, ids=ids)
        return Response(status_code=status_code)

    router.add_api_route("", capture, methods=CAPTURE_METHODS, include_in_schema=False)
    router.add_api_route(
        "/{path:path}",
        capture,
        methods=CAPTURE_METHODS,
        include_in_schema=False,
    )
    return router
