"""Persisted capture of one inbound HTTP request."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Column, DateTime, Text
from sqlmodel import Field, SQLModel

from webhook_inspector.core.ids import new_webhook_id
from webhook_inspector.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class Webhook(SQLModel, table=True):
    """Captured inbound request; written once and never updated."""

    __tablename__ = "webhooks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=new_webhook_id, primary_key=True)
    method: str
    path_name: str
    ip: str | None = None
    status_code: int = Field(default=200)
    content_type: str | None = None
    content_length: int = Field(default=0)
    query_params: dict[str, str] | None = Field(default=None, sa_column=Column(JSON))
    headers: dict[str, str] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    body: str | None = Field(default=None, sa_column=Column(Text))
    # Naive UTC, stored in a column without time zone.
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, index=True, nullable=False),
    )
