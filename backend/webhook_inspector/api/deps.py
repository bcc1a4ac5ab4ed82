"""Dependency providers resolving per-app collaborators from `app.state`."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from webhook_inspector.core.ids import MonotonicIdGenerator
    from webhook_inspector.integrations.text_generation import TextGenerator
    from webhook_inspector.services.webhooks.store import WebhookStore


def get_webhook_store(request: Request) -> WebhookStore:
    return request.app.state.webhook_store


def get_text_generator(request: Request) -> TextGenerator:
    return request.app.state.text_generator


def get_id_generator(request: Request) -> MonotonicIdGenerator:
    return request.app.state.id_generator
