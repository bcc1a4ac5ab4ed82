# ruff: noqa: INP001
"""Shared fixtures: an in-memory SQLite-backed webhook store."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GEMINI_API_KEY", "")

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from webhook_inspector.db.session import build_engine, build_session_maker, init_db
from webhook_inspector.services.webhooks.store import WebhookStore


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine: AsyncEngine) -> WebhookStore:
    return WebhookStore(build_session_maker(engine))


@dataclass
class FakeTextGenerator:
    """Records prompts and returns a canned reply or raises a canned error."""

    reply: str = "export function handleWebhook() {}"
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest_asyncio.fixture
async def fake_generator() -> FakeTextGenerator:
    return FakeTextGenerator()
