"""Async engine and session-maker construction."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from webhook_inspector.core.logging import get_logger

# Imported for its side effect of registering the table on SQLModel.metadata.
from webhook_inspector.models.webhooks import Webhook

logger = get_logger(__name__)
_RUNTIME_TYPE_REFERENCES = (Webhook,)

SessionMaker = async_sessionmaker[AsyncSession]


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine; in-memory SQLite shares one connection."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_maker(engine: AsyncEngine) -> SessionMaker:
    """Return a session factory that keeps loaded rows usable after commit."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create missing tables directly from model metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("db.schema.ensured", extra={"tables": sorted(SQLModel.metadata.tables)})
