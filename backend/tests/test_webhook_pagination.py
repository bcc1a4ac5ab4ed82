# ruff: noqa: INP001, S101
"""Tests for newest-first cursor pagination under inserts and deletes."""

from __future__ import annotations

import random
from uuid import UUID

import pytest

from webhook_inspector.core.ids import MonotonicIdGenerator
from webhook_inspector.models.webhooks import Webhook
from webhook_inspector.services.webhooks.pagination import list_webhooks
from webhook_inspector.services.webhooks.store import WebhookStore


def _webhook(webhook_id: UUID) -> Webhook:
    return Webhook(id=webhook_id, method="POST", path_name="/p", headers={})


async def _insert(store: WebhookStore, generator: MonotonicIdGenerator, count: int) -> list[UUID]:
    ids = [generator.next() for _ in range(count)]
    for webhook_id in ids:
        await store.insert(_webhook(webhook_id))
    return ids


async def _walk(store: WebhookStore, page_size: int) -> list[UUID]:
    seen: list[UUID] = []
    cursor: UUID | None = None
    while True:
        page = await list_webhooks(store, cursor=cursor, page_size=page_size)
        seen.extend(item.id for item in page.items)
        if page.next_cursor is None:
            return seen
        cursor = page.next_cursor


@pytest.mark.asyncio
async def test_five_records_in_pages_of_two(store: WebhookStore) -> None:
    a, b, c, d, e = await _insert(store, MonotonicIdGenerator(), 5)

    first = await list_webhooks(store, page_size=2)
    second = await list_webhooks(store, cursor=first.next_cursor, page_size=2)
    third = await list_webhooks(store, cursor=second.next_cursor, page_size=2)

    assert [item.id for item in first.items] == [e, d]
    assert first.next_cursor == d
    assert [item.id for item in second.items] == [c, b]
    assert second.next_cursor == b
    assert [item.id for item in third.items] == [a]
    assert third.next_cursor is None


@pytest.mark.asyncio
async def test_exact_multiple_of_page_size_ends_without_cursor(store: WebhookStore) -> None:
    await _insert(store, MonotonicIdGenerator(), 4)

    first = await list_webhooks(store, page_size=2)
    second = await list_webhooks(store, cursor=first.next_cursor, page_size=2)

    assert len(second.items) == 2
    assert second.next_cursor is None


@pytest.mark.asyncio
async def test_empty_store_and_exhausted_cursor_return_empty_page(store: WebhookStore) -> None:
    generator = MonotonicIdGenerator()

    empty = await list_webhooks(store, page_size=3)
    (only,) = await _insert(store, generator, 1)
    beyond = await list_webhooks(store, cursor=only, page_size=3)

    assert empty.items == [] and empty.next_cursor is None
    assert beyond.items == [] and beyond.next_cursor is None


@pytest.mark.asyncio
async def test_walk_ignores_records_inserted_after_it_began(store: WebhookStore) -> None:
    generator = MonotonicIdGenerator()
    original = await _insert(store, generator, 6)

    first = await list_webhooks(store, page_size=2)
    await _insert(store, generator, 3)
    second = await list_webhooks(store, cursor=first.next_cursor, page_size=2)
    third = await list_webhooks(store, cursor=second.next_cursor, page_size=2)

    walked = [item.id for page in (first, second, third) for item in page.items]
    assert walked == list(reversed(original))
    assert third.next_cursor is None


@pytest.mark.asyncio
async def test_deleting_the_cursor_record_does_not_break_resumption(store: WebhookStore) -> None:
    a, b, c, d, e = await _insert(store, MonotonicIdGenerator(), 5)

    first = await list_webhooks(store, page_size=2)
    await store.delete_by_id(d)
    second = await list_webhooks(store, cursor=first.next_cursor, page_size=2)

    assert first.next_cursor == d
    assert [item.id for item in second.items] == [c, b]


@pytest.mark.asyncio
async def test_deleting_between_cursors_omits_only_that_record(store: WebhookStore) -> None:
    a, b, c, d, e = await _insert(store, MonotonicIdGenerator(), 5)

    first = await list_webhooks(store, page_size=2)
    await store.delete_by_id(b)
    rest = await list_webhooks(store, cursor=first.next_cursor, page_size=2)

    assert [item.id for item in rest.items] == [c, a]
    assert rest.next_cursor is None


@pytest.mark.asyncio
async def test_random_inserts_and_deletes_enumerate_survivors_once(store: WebhookStore) -> None:
    rng = random.Random(1234)
    generator = MonotonicIdGenerator()
    survivors: list[UUID] = []
    for _ in range(40):
        if survivors and rng.random() < 0.3:
            victim = survivors.pop(rng.randrange(len(survivors)))
            await store.delete_by_id(victim)
        else:
            survivors.extend(await _insert(store, generator, 1))

    for page_size in (1, 3, 7, 100):
        walked = await _walk(store, page_size)
        assert walked == sorted(survivors, reverse=True)


@pytest.mark.asyncio
async def test_page_size_must_be_positive(store: WebhookStore) -> None:
    with pytest.raises(ValueError, match="positive"):
        await list_webhooks(store, page_size=0)
