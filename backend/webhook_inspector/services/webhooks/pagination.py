"""Cursor pagination over captured webhooks, newest first.

The cursor is the id of the last item handed out. Because ids only grow,
walking toward strictly smaller ids means a record inserted mid-walk can never
enter a later page, and deleting any record (including the cursor's own)
cannot make the walk skip or repeat a surviving one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from webhook_inspector.models.webhooks import Webhook
    from webhook_inspector.services.webhooks.store import WebhookStore

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class WebhookPage:
    """One page of a pagination walk."""

    items: list[Webhook] = field(default_factory=list)
    next_cursor: UUID | None = None


async def list_webhooks(
    store: WebhookStore,
    *,
    cursor: UUID | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> WebhookPage:
    """Return the page that follows `cursor` in descending id order."""
    if page_size < 1:
        msg = "page_size must be a positive integer"
        raise ValueError(msg)
    # One extra row past the page tells us whether more data exists.
    rows = await store.page_after(cursor, page_size + 1)
    if len(rows) <= page_size:
        return WebhookPage(items=rows, next_cursor=None)
    items = rows[:page_size]
    return WebhookPage(items=items, next_cursor=items[-1].id)
