"""Schemas for webhook list/detail/generate API payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class WebhookSummary(SQLModel):
    """Compact webhook representation used by the listing."""

    id: UUID
    method: str
    path_name: str
    created_at: datetime


class WebhookRead(WebhookSummary):
    """Full captured request returned by the detail endpoint."""

    ip: str | None = None
    status_code: int
    content_type: str | None = None
    content_length: int
    query_params: dict[str, str] | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None


class WebhookPageRead(SQLModel):
    """One page of the newest-first listing plus the cursor for the next."""

    items: list[WebhookSummary] = Field(default_factory=list)
    next_cursor: UUID | None = None


class GenerateHandlerRequest(SQLModel):
    """Selection of webhooks to derive handler code from."""

    webhook_ids: list[UUID] = Field(default_factory=list)


class GenerateHandlerResponse(SQLModel):
    """Generated handler source."""

    code: str


class OkResponse(SQLModel):
    """Acknowledgement for operations without a body."""

    ok: bool = True
