"""Durable store of captured webhooks.

Each operation opens its own session from the injected session maker, so
concurrent handlers never share a transaction and reads see whatever the
database's isolation level grants them. Uniqueness of `id` is enforced by the
primary key; a collision surfaces as `DuplicateIdError` rather than a generic
storage failure.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col

from webhook_inspector.core.logging import TRACE_LEVEL, get_logger
from webhook_inspector.db import crud
from webhook_inspector.models.webhooks import Webhook
from webhook_inspector.services.webhooks.exceptions import (
    DuplicateIdError,
    StoreUnavailableError,
    WebhookNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Collection, Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

    from webhook_inspector.db.session import SessionMaker

logger = get_logger(__name__)


class WebhookStore:
    """Insert, delete and range-query primitives over the `webhooks` table."""

    def __init__(self, session_maker: SessionMaker) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except IntegrityError as exc:
            logger.warning("webhook.store.integrity_error", extra={"operation": operation})
            raise DuplicateIdError(str(exc.orig or exc)) from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "webhook.store.unavailable",
                extra={"operation": operation, "error": str(exc)},
            )
            raise StoreUnavailableError(str(exc)) from exc

    async def insert(self, webhook: Webhook) -> Webhook:
        """Append one record; fails on id collision or storage failure."""
        async with self._session("insert") as session:
            if await crud.get_by_id(session, Webhook, webhook.id) is not None:
                raise DuplicateIdError(str(webhook.id))
            return await crud.save(session, webhook, refresh=False)

    async def insert_many(self, webhooks: Sequence[Webhook]) -> int:
        """Append a batch in a single transaction."""
        if not webhooks:
            return 0
        async with self._session("insert_many") as session:
            return await crud.save_all(session, webhooks)

    async def get_by_id(self, webhook_id: UUID) -> Webhook:
        async with self._session("get_by_id") as session:
            webhook = await crud.get_by_id(session, Webhook, webhook_id)
        if webhook is None:
            raise WebhookNotFoundError(str(webhook_id))
        return webhook

    async def delete_by_id(self, webhook_id: UUID) -> int:
        """Remove one record; a missing id reports zero affected rows."""
        async with self._session("delete_by_id") as session:
            return await crud.delete_where(
                session,
                Webhook,
                col(Webhook.id) == webhook_id,
                commit=True,
            )

    async def clear(self) -> int:
        """Remove every record."""
        async with self._session("clear") as session:
            return await crud.delete_where(session, Webhook, commit=True)

    async def replace_all(self, webhooks: Sequence[Webhook]) -> tuple[int, int]:
        """Swap the whole table for `webhooks` in one transaction.

        Returns `(removed, inserted)`. On failure the previous contents stay.
        """
        async with self._session("replace_all") as session:
            removed = await crud.delete_where(session, Webhook, commit=not webhooks)
            inserted = await crud.save_all(session, webhooks) if webhooks else 0
        return removed, inserted

    async def count(self) -> int:
        async with self._session("count") as session:
            return await crud.count_where(session, Webhook)

    async def page_after(self, cursor: UUID | None, limit: int) -> list[Webhook]:
        """Return up to `limit` records older than `cursor`, newest first.

        Without a cursor the walk starts at the newest record. The cursor is a
        comparison bound, so it need not name a surviving row.
        """
        criteria = () if cursor is None else (col(Webhook.id) < cursor,)
        async with self._session("page_after") as session:
            rows = await crud.list_where(
                session,
                Webhook,
                *criteria,
                order_by=(col(Webhook.id).desc(),),
                limit=limit,
            )
        logger.log(
            TRACE_LEVEL,
            "webhook.store.page",
            extra={"cursor": str(cursor) if cursor else None, "limit": limit, "rows": len(rows)},
        )
        return rows

    async def list_by_ids(self, webhook_ids: Collection[UUID]) -> list[Webhook]:
        """Return the records whose id is in `webhook_ids`, oldest first."""
        if not webhook_ids:
            return []
        async with self._session("list_by_ids") as session:
            return await crud.list_where(
                session,
                Webhook,
                col(Webhook.id).in_(list(webhook_ids)),
                order_by=(col(Webhook.id).asc(),),
            )
