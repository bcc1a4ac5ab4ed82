"""Webhook capture/retrieval error taxonomy and HTTP mapping helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fastapi import HTTPException, status


class WebhookErrorCode(str, Enum):
    """Stable machine-readable codes surfaced in error responses."""

    STORE_UNAVAILABLE = "store_unavailable"
    NOT_FOUND = "not_found"
    DUPLICATE_ID = "duplicate_id"
    CAPTURE_FAILED = "capture_failed"
    EMPTY_SELECTION = "empty_selection"
    NO_MATCHING_RECORDS = "no_matching_records"
    GENERATION_FAILED = "generation_failed"


class WebhookError(Exception):
    """Base class for webhook engine failures."""

    code: WebhookErrorCode


class StoreUnavailableError(WebhookError):
    """Raised when the backing database cannot complete an operation."""

    code = WebhookErrorCode.STORE_UNAVAILABLE


class WebhookNotFoundError(WebhookError, LookupError):
    """Raised when a record id does not resolve to a stored webhook."""

    code = WebhookErrorCode.NOT_FOUND


class DuplicateIdError(WebhookError):
    """Raised when an insert collides with an existing record id."""

    code = WebhookErrorCode.DUPLICATE_ID


class CaptureFailedError(WebhookError):
    """Raised when an inbound request could not be persisted."""

    code = WebhookErrorCode.CAPTURE_FAILED


class EmptySelectionError(WebhookError, ValueError):
    """Raised when summarization is requested for no ids."""

    code = WebhookErrorCode.EMPTY_SELECTION


class NoMatchingRecordsError(WebhookError, LookupError):
    """Raised when none of the selected ids resolve to stored webhooks."""

    code = WebhookErrorCode.NO_MATCHING_RECORDS


class GenerationFailedError(WebhookError):
    """Raised when the text-generation collaborator errors or times out."""

    code = WebhookErrorCode.GENERATION_FAILED


@dataclass(frozen=True, slots=True)
class WebhookErrorPolicy:
    """HTTP policy for mapping webhook engine failures."""

    status_code: int
    message: str


_WEBHOOK_ERROR_POLICIES: dict[WebhookErrorCode, WebhookErrorPolicy] = {
    WebhookErrorCode.STORE_UNAVAILABLE: WebhookErrorPolicy(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Webhook storage is unavailable",
    ),
    WebhookErrorCode.NOT_FOUND: WebhookErrorPolicy(
        status_code=status.HTTP_404_NOT_FOUND,
        message="Webhook not found",
    ),
    WebhookErrorCode.DUPLICATE_ID: WebhookErrorPolicy(
        status_code=status.HTTP_409_CONFLICT,
        message="Webhook id already exists",
    ),
    WebhookErrorCode.CAPTURE_FAILED: WebhookErrorPolicy(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Webhook could not be captured",
    ),
    WebhookErrorCode.EMPTY_SELECTION: WebhookErrorPolicy(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Select at least one webhook",
    ),
    WebhookErrorCode.NO_MATCHING_RECORDS: WebhookErrorPolicy(
        status_code=status.HTTP_404_NOT_FOUND,
        message="None of the selected webhooks exist",
    ),
    WebhookErrorCode.GENERATION_FAILED: WebhookErrorPolicy(
        status_code=status.HTTP_502_BAD_GATEWAY,
        message="Handler generation failed",
    ),
}


def webhook_error_detail(exc: WebhookError) -> dict[str, str]:
    """Return the structured `detail` body for a webhook engine failure."""
    policy = _WEBHOOK_ERROR_POLICIES[exc.code]
    reason = str(exc).strip()
    message = f"{policy.message}: {reason}" if reason else policy.message
    return {"code": exc.code.value, "message": message}


def map_webhook_error_to_http_exception(exc: WebhookError) -> HTTPException:
    """Map a webhook engine failure into a typed HTTP exception."""
    policy = _WEBHOOK_ERROR_POLICIES[exc.code]
    return HTTPException(status_code=policy.status_code, detail=webhook_error_detail(exc))
