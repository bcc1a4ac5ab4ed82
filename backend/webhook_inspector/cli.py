"""Administrative command: wipe the store and load synthetic webhooks.

Usage:
    webhook-inspector-seed [--count N] [--seed S]

Intended for development and test databases only; every existing record is
deleted first.
"""

from __future__ import annotations

import argparse
import asyncio
import random

from webhook_inspector.core.config import Settings, settings
from webhook_inspector.core.logging import configure_logging, get_logger
from webhook_inspector.db.session import build_engine, build_session_maker, init_db
from webhook_inspector.services.webhooks.seed import SeedReport, reseed
from webhook_inspector.services.webhooks.store import WebhookStore

logger = get_logger(__name__)


def _parse_args(argv: list[str] | None, app_settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reseed the webhook store with synthetic data.")
    parser.add_argument(
        "--count",
        type=int,
        default=app_settings.seed_count,
        help="number of webhooks to generate (default: %(default)s)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="random seed for reproducible data",
    )
    args = parser.parse_args(argv)
    if args.count < 0:
        parser.error("--count must not be negative")
    return args


async def run_seed(app_settings: Settings, *, count: int, seed: int | None) -> SeedReport:
    """Reseed the database configured by `app_settings`."""
    engine = build_engine(app_settings.database_url)
    try:
        if app_settings.db_auto_migrate:
            await init_db(engine)
        store = WebhookStore(build_session_maker(engine))
        return await reseed(
            store,
            count=count,
            method=app_settings.seed_method,
            path_name=app_settings.seed_path_name,
            rng=random.Random(seed),
        )
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    configure_logging(level=settings.log_level, log_format=settings.log_format)
    args = _parse_args(argv, settings)
    try:
        report = asyncio.run(run_seed(settings, count=args.count, seed=args.seed))
    except Exception:
        logger.exception("webhook.seed.failed")
        return 1
    print(f"Seeded {report.count} webhooks")
    for event_type, occurrences in report.distribution.items():
        print(f"  {event_type}: {occurrences}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
