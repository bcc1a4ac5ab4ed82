"""Synthetic Stripe-style webhook data for reseeding a development store.

Bodies are produced by one generator per event category, registered in
`CATEGORY_GENERATORS`; event types without a dedicated generator fall back to
a generic object. Timestamps are drawn first and sorted so ids issued from
them keep `created_at` monotonic with `id`.
"""

from __future__ import annotations

import json
import random
import string
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

from webhook_inspector.core.ids import MonotonicIdGenerator, timestamp_of
from webhook_inspector.core.logging import get_logger
from webhook_inspector.core.time import to_epoch_ms, utcnow
from webhook_inspector.models.webhooks import Webhook

if TYPE_CHECKING:
    from collections.abc import Callable

    from webhook_inspector.services.webhooks.store import WebhookStore

    BodyGenerator = Callable[[str, random.Random], dict[str, Any]]

logger = get_logger(__name__)

STRIPE_EVENT_TYPES: tuple[str, ...] = (
    "payment_intent.succeeded",
    "payment_intent.created",
    "payment_intent.payment_failed",
    "charge.succeeded",
    "charge.failed",
    "charge.refunded",
    "customer.created",
    "customer.updated",
    "customer.deleted",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.trial_will_end",
    "invoice.created",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
    "invoice.finalized",
    "checkout.session.completed",
    "checkout.session.expired",
    "payment_method.attached",
    "payment_method.detached",
    "payout.created",
    "payout.paid",
    "payout.failed",
    "refund.created",
    "refund.updated",
)

STATUS_CODE_WEIGHTS: tuple[tuple[int, int], ...] = ((200, 85), (400, 5), (401, 3), (500, 7))
CURRENCIES = ("usd", "eur", "brl")
API_VERSION = "2023-10-16"
RECENT_WINDOW = timedelta(days=30)

_FIRST_NAMES = ("Ana", "Bruno", "Carla", "Diego", "Elena", "Felipe", "Grace", "Hugo", "Iris", "Jonas")
_LAST_NAMES = ("Silva", "Souza", "Costa", "Martins", "Oliveira", "Lopes", "Moreau", "Weber", "Park")
_PRODUCTS = ("Pro plan", "Starter plan", "Team seat", "API credits", "Annual license", "Add-on pack")
_DOMAINS = ("example.com", "acme.io", "mail.test", "shop.dev")
_TAGLINES = ("Fast checkout", "Loyal customer", "Enterprise account", "Trial user")


def _alnum(rng: random.Random, length: int) -> str:
    return "".join(rng.choices(string.ascii_letters + string.digits, k=length))


def _uuid(rng: random.Random) -> str:
    return str(UUID(int=rng.getrandbits(128), version=4))


def _full_name(rng: random.Random) -> str:
    return f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}"


def _email(rng: random.Random) -> str:
    return f"{rng.choice(_FIRST_NAMES).lower()}.{_alnum(rng, 5).lower()}@{rng.choice(_DOMAINS)}"


def _ipv4(rng: random.Random) -> str:
    return ".".join(str(rng.randint(1, 254)) for _ in range(4))


def _epoch(rng: random.Random, *, past: bool = True) -> float:
    offset = rng.uniform(0, RECENT_WINDOW.total_seconds())
    now = to_epoch_ms(utcnow()) / 1000
    return round(now - offset if past else now + offset, 3)


def _status_for(event_type: str, succeeded: str, failed: str, otherwise: str) -> str:
    if "succeeded" in event_type:
        return succeeded
    if "failed" in event_type:
        return failed
    return otherwise


def _payment_intent(event_type: str, rng: random.Random) -> dict[str, Any]:
    return {
        "id": f"pi_{_alnum(rng, 24)}",
        "object": "payment_intent",
        "amount": rng.randint(1000, 100000),
        "currency": rng.choice(CURRENCIES),
        "status": _status_for(event_type, "succeeded", "failed", "requires_payment_method"),
        "customer": f"cus_{_alnum(rng, 14)}",
        "description": rng.choice(_PRODUCTS),
        "metadata": {"order_id": _uuid(rng), "customer_name": _full_name(rng)},
    }


def _charge(event_type: str, rng: random.Random) -> dict[str, Any]:
    return {
        "id": f"ch_{_alnum(rng, 24)}",
        "object": "charge",
        "amount": rng.randint(1000, 100000),
        "currency": rng.choice(CURRENCIES),
        "status": "succeeded" if "succeeded" in event_type else "failed",
        "customer": f"cus_{_alnum(rng, 14)}",
        "description": rng.choice(_PRODUCTS),
        "receipt_email": _email(rng),
    }


def _customer(_event_type: str, rng: random.Random) -> dict[str, Any]:
    return {
        "id": f"cus_{_alnum(rng, 14)}",
        "object": "customer",
        "email": _email(rng),
        "name": _full_name(rng),
        "phone": f"+1-555-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}",
        "description": rng.choice(_TAGLINES),
        "metadata": {"user_id": _uuid(rng)},
    }


def _invoice(event_type: str, rng: random.Random) -> dict[str, Any]:
    return {
        "id": f"in_{_alnum(rng, 24)}",
        "object": "invoice",
        "amount_due": rng.randint(1000, 50000),
        "amount_paid": rng.randint(1000, 50000) if "succeeded" in event_type else 0,
        "currency": rng.choice(CURRENCIES),
        "customer": f"cus_{_alnum(rng, 14)}",
        "status": _status_for(event_type, "paid", "open", "draft"),
        "subscription": f"sub_{_alnum(rng, 14)}",
    }


def _checkout_session(event_type: str, rng: random.Random) -> dict[str, Any]:
    completed = "completed" in event_type
    return {
        "id": f"cs_{_alnum(rng, 24)}",
        "object": "checkout.session",
        "amount_total": rng.randint(1000, 100000),
        "currency": rng.choice(CURRENCIES),
        "customer": f"cus_{_alnum(rng, 14)}",
        "customer_email": _email(rng),
        "payment_status": "paid" if completed else "unpaid",
        "status": "complete" if completed else "expired",
        "mode": rng.choice(("payment", "subscription", "setup")),
    }


def _payout(event_type: str, rng: random.Random) -> dict[str, Any]:
    if "paid" in event_type:
        payout_status = "paid"
    elif "failed" in event_type:
        payout_status = "failed"
    else:
        payout_status = "pending"
    return {
        "id": f"po_{_alnum(rng, 24)}",
        "object": "payout",
        "amount": rng.randint(10000, 1000000),
        "currency": rng.choice(CURRENCIES),
        "status": payout_status,
        "arrival_date": _epoch(rng, past=False),
        "method": "standard",
    }


def _refund(_event_type: str, rng: random.Random) -> dict[str, Any]:
    return {
        "id": f"re_{_alnum(rng, 24)}",
        "object": "refund",
        "amount": rng.randint(1000, 50000),
        "currency": rng.choice(CURRENCIES),
        "charge": f"ch_{_alnum(rng, 24)}",
        "reason": rng.choice(("duplicate", "fraudulent", "requested_by_customer")),
        "status": "succeeded",
    }


def _generic(event_type: str, rng: random.Random) -> dict[str, Any]:
    return {"id": _alnum(rng, 24), "object": event_type.split(".")[0]}


CATEGORY_GENERATORS: dict[str, BodyGenerator] = {
    "payment_intent": _payment_intent,
    "charge": _charge,
    "customer": _customer,
    "invoice": _invoice,
    "checkout.session": _checkout_session,
    "payout": _payout,
    "refund": _refund,
}


def category_of(event_type: str) -> str:
    """Return the longest registered category prefixing `event_type`."""
    matches = [name for name in CATEGORY_GENERATORS if event_type.startswith(f"{name}.")]
    if matches:
        return max(matches, key=len)
    return event_type.split(".")[0]


def generate_body(event_type: str, rng: random.Random) -> dict[str, Any]:
    """Build a Stripe event envelope with a category-specific data object."""
    generator = CATEGORY_GENERATORS.get(category_of(event_type), _generic)
    return {
        "id": f"evt_{_alnum(rng, 24)}",
        "object": "event",
        "api_version": API_VERSION,
        "created": _epoch(rng),
        "type": event_type,
        "livemode": rng.random() < 0.5,
        "pending_webhooks": rng.randint(0, 3),
        "request": {"id": f"req_{_alnum(rng, 24)}", "idempotency_key": _uuid(rng)},
        "data": {"object": generator(event_type, rng)},
    }


def pick_status_code(rng: random.Random) -> int:
    codes = [code for code, _ in STATUS_CODE_WEIGHTS]
    weights = [weight for _, weight in STATUS_CODE_WEIGHTS]
    return rng.choices(codes, weights=weights, k=1)[0]


def _headers(rng: random.Random, created_ms: int) -> dict[str, str]:
    signature = "".join(rng.choices("0123456789abcdef", k=64))
    return {
        "content-type": "application/json",
        "stripe-signature": f"t={created_ms // 1000},v1={signature}",
        "user-agent": "Stripe/1.0 (+https://stripe.com/docs/webhooks)",
        "x-stripe-webhook-id": f"whsec_{_alnum(rng, 32)}",
        "accept": "*/*",
        "host": rng.choice(_DOMAINS),
    }


@dataclass(frozen=True)
class SeedReport:
    """Outcome of a reseed run."""

    count: int
    distribution: dict[str, int] = field(default_factory=dict)


def generate_webhooks(
    count: int,
    *,
    method: str,
    path_name: str,
    rng: random.Random | None = None,
    ids: MonotonicIdGenerator | None = None,
) -> list[Webhook]:
    """Generate `count` synthetic records in ascending id order."""
    if count < 0:
        msg = "count must not be negative"
        raise ValueError(msg)
    rng = rng or random.Random()
    ids = ids or MonotonicIdGenerator()
    now_ms = to_epoch_ms(utcnow())
    window_ms = int(RECENT_WINDOW.total_seconds() * 1000)
    stamps = sorted(now_ms - rng.randint(0, window_ms) for _ in range(count))

    webhooks: list[Webhook] = []
    for stamp in stamps:
        event_type = rng.choice(STRIPE_EVENT_TYPES)
        body = json.dumps(generate_body(event_type, rng), indent=2)
        webhook_id = ids.next(timestamp_ms=stamp)
        webhooks.append(
            Webhook(
                id=webhook_id,
                method=method,
                path_name=path_name,
                ip=_ipv4(rng),
                status_code=pick_status_code(rng),
                content_type="application/json",
                content_length=len(body.encode("utf-8")),
                query_params=(
                    {"source": rng.choice(("stripe", "webhook", "api"))}
                    if rng.random() < 0.5
                    else None
                ),
                headers=_headers(rng, stamp),
                body=body,
                created_at=timestamp_of(webhook_id),
            ),
        )
    return webhooks


def event_distribution(webhooks: list[Webhook]) -> dict[str, int]:
    """Count records per event type, most frequent first."""
    counts: Counter[str] = Counter()
    for webhook in webhooks:
        try:
            event_type = json.loads(webhook.body or "{}").get("type") or "unknown"
        except ValueError:
            event_type = "unknown"
        counts[event_type] += 1
    return dict(counts.most_common())


async def reseed(
    store: WebhookStore,
    *,
    count: int,
    method: str = "POST",
    path_name: str = "/webhooks/stripe",
    rng: random.Random | None = None,
    ids: MonotonicIdGenerator | None = None,
) -> SeedReport:
    """Replace the store contents with `count` synthetic records atomically."""
    webhooks = generate_webhooks(count, method=method, path_name=path_name, rng=rng, ids=ids)
    removed, _ = await store.replace_all(webhooks)
    logger.info("webhook.seed.replaced", extra={"removed": removed})
    distribution = event_distribution(webhooks)
    logger.info(
        "webhook.seed.completed",
        extra={"count": len(webhooks), "event_types": len(distribution)},
    )
    for event_type, occurrences in distribution.items():
        logger.info("webhook.seed.distribution", extra={"event_type": event_type, "count": occurrences})
    return SeedReport(count=len(webhooks), distribution=distribution)
