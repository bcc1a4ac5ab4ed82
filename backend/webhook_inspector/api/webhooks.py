"""Webhook listing, detail, deletion and handler-generation endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from webhook_inspector.api.deps import get_text_generator, get_webhook_store
from webhook_inspector.core.logging import get_logger
from webhook_inspector.integrations.text_generation import TextGenerator
from webhook_inspector.models.webhooks import Webhook
from webhook_inspector.schemas.webhooks import (
    GenerateHandlerRequest,
    GenerateHandlerResponse,
    OkResponse,
    WebhookPageRead,
    WebhookRead,
    WebhookSummary,
)
from webhook_inspector.services.webhooks.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    list_webhooks,
)
from webhook_inspector.services.webhooks.store import WebhookStore
from webhook_inspector.services.webhooks.summarize import summarize_webhooks

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["webhooks"])
STORE_DEP = Depends(get_webhook_store)
GENERATOR_DEP = Depends(get_text_generator)
CURSOR_QUERY = Query(default=None)
LIMIT_QUERY = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


@router.get("/webhooks", response_model=WebhookPageRead)
async def list_webhooks_page(
    *,
    cursor: UUID | None = CURSOR_QUERY,
    limit: int = LIMIT_QUERY,
    store: WebhookStore = STORE_DEP,
) -> WebhookPageRead:
    """List captured webhooks newest first, resuming strictly before `cursor`."""
    page = await list_webhooks(store, cursor=cursor, page_size=limit)
    return WebhookPageRead(
        items=[
            WebhookSummary.model_validate(item, from_attributes=True) for item in page.items
        ],
        next_cursor=page.next_cursor,
    )


@router.get("/webhooks/{webhook_id}", response_model=WebhookRead)
async def get_webhook(
    webhook_id: UUID,
    store: WebhookStore = STORE_DEP,
) -> Webhook:
    """Return one captured webhook with its headers and body."""
    return await store.get_by_id(webhook_id)


@router.delete("/webhooks/{webhook_id}", response_model=OkResponse)
async def delete_webhook(
    webhook_id: UUID,
    store: WebhookStore = STORE_DEP,
) -> OkResponse:
    """Delete a captured webhook; deleting an unknown id also succeeds."""
    affected = await store.delete_by_id(webhook_id)
    logger.info(
        "webhook.deleted",
        extra={"webhook_id": str(webhook_id), "affected": affected},
    )
    return OkResponse()


@router.post(
    "/generate",
    response_model=GenerateHandlerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_handler(
    payload: GenerateHandlerRequest,
    store: WebhookStore = STORE_DEP,
    generator: TextGenerator = GENERATOR_DEP,
) -> GenerateHandlerResponse:
    """Generate handler code from the bodies of the selected webhooks."""
    code = await summarize_webhooks(store, payload.webhook_ids, generator)
    return GenerateHandlerResponse(code=code)
