"""Join selected webhook bodies and ask the generator for handler code."""

from __future__ import annotations

from typing import TYPE_CHECKING

from webhook_inspector.core.logging import get_logger
from webhook_inspector.integrations.text_generation import TextGenerationError
from webhook_inspector.services.webhooks.exceptions import (
    EmptySelectionError,
    GenerationFailedError,
    NoMatchingRecordsError,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from webhook_inspector.integrations.text_generation import TextGenerator
    from webhook_inspector.models.webhooks import Webhook
    from webhook_inspector.services.webhooks.store import WebhookStore

logger = get_logger(__name__)

BODY_DELIMITER = "\n\n"

HANDLER_PROMPT_TEMPLATE = """\
You will receive one or more example request bodies from webhook deliveries of an API.
Each example may represent a different event type (e.g. user.created, payment.failed,
order.shipped).

Webhook payloads:

<<<
{payload}
>>>

Your task:

- Analyze every payload and infer its event type, field names and data structure.
- Generate a single TypeScript file exporting a function named handleWebhook that:
  - accepts a request body (unknown) and an event name (string);
  - validates and infers the type of each possible event with Zod;
  - uses a discriminated union or type guards to decide which event was received;
  - runs the matching handler logic for each event type (a log line or a switch branch).
- Include every Zod schema for the payloads in the same file.
- Export every inferred type with z.infer<typeof SchemaName>.

The output must be a complete, runnable TypeScript file with realistic schemas
inferred from the examples. Return only the code: no explanations, no markdown fences,
no comments.
"""


def join_bodies(webhooks: Sequence[Webhook]) -> str:
    """Concatenate bodies in the given order, blank-line separated."""
    return BODY_DELIMITER.join(webhook.body or "" for webhook in webhooks)


def build_generation_prompt(payload: str) -> str:
    return HANDLER_PROMPT_TEMPLATE.format(payload=payload)


async def summarize_webhooks(
    store: WebhookStore,
    webhook_ids: Collection[UUID],
    generator: TextGenerator,
) -> str:
    """Return generated handler code for the selected webhooks.

    Unknown ids are skipped as long as at least one id matches. The generator
    is invoked exactly once and its text is returned unmodified.
    """
    if not webhook_ids:
        raise EmptySelectionError("no webhook ids were provided")
    webhooks = await store.list_by_ids(set(webhook_ids))
    if not webhooks:
        raise NoMatchingRecordsError(f"{len(set(webhook_ids))} id(s) did not match")

    payload = join_bodies(webhooks)
    try:
        code = await generator.generate(build_generation_prompt(payload))
    except TextGenerationError as exc:
        logger.warning(
            "webhook.generate.failed",
            extra={"selected": len(webhooks), "error": str(exc)},
        )
        raise GenerationFailedError(str(exc)) from exc
    logger.info(
        "webhook.generate.completed",
        extra={
            "requested": len(webhook_ids),
            "selected": len(webhooks),
            "payload_chars": len(payload),
        },
    )
    return code
