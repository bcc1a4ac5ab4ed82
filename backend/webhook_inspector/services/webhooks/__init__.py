"""Webhook capture, pagination, summarization and reseed services.

Prefer importing from this package when used by other modules.
"""

from webhook_inspector.services.webhooks.capture import CapturedRequest, capture_webhook
from webhook_inspector.services.webhooks.exceptions import (
    CaptureFailedError,
    DuplicateIdError,
    EmptySelectionError,
    GenerationFailedError,
    NoMatchingRecordsError,
    StoreUnavailableError,
    WebhookError,
    WebhookNotFoundError,
)
from webhook_inspector.services.webhooks.pagination import WebhookPage, list_webhooks
from webhook_inspector.services.webhooks.seed import SeedReport, reseed
from webhook_inspector.services.webhooks.store import WebhookStore
from webhook_inspector.services.webhooks.summarize import summarize_webhooks

__all__ = [
    "CaptureFailedError",
    "CapturedRequest",
    "DuplicateIdError",
    "EmptySelectionError",
    "GenerationFailedError",
    "NoMatchingRecordsError",
    "SeedReport",
    "StoreUnavailableError",
    "WebhookError",
    "WebhookNotFoundError",
    "WebhookPage",
    "WebhookStore",
    "capture_webhook",
    "list_webhooks",
    "reseed",
    "summarize_webhooks",
]
