"""Logging setup with request-scoped context.

Request ids and the active route are stored in context vars by the request-id
middleware and stamped onto every record by `RequestContextFilter`, so log
lines emitted deep inside services still correlate with the HTTP request that
caused them.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any, Final

TRACE_LEVEL: Final[int] = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_request_method_var: ContextVar[str | None] = ContextVar("request_method", default=None)
_request_path_var: ContextVar[str | None] = ContextVar("request_path", default=None)

# Attributes present on every LogRecord; anything else came in through `extra`.
_RESERVED_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        *logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys(),
        "message",
        "asctime",
        "request_id",
        "request_method",
        "request_path",
    },
)

RouteContextTokens = tuple[Token[str | None], Token[str | None]]


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger from the standard logging hierarchy."""
    return logging.getLogger(name)


def get_request_id() -> str | None:
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> Token[str | None]:
    return _request_id_var.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id_var.reset(token)


def set_request_route_context(method: str, path: str) -> RouteContextTokens:
    return _request_method_var.set(method), _request_path_var.set(path)


def reset_request_route_context(tokens: RouteContextTokens) -> None:
    method_token, path_token = tokens
    _request_path_var.reset(path_token)
    _request_method_var.reset(method_token)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


class RequestContextFilter(logging.Filter):
    """Inject request id and route context into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_var.get()
        record.request_method = _request_method_var.get()
        record.request_path = _request_path_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON with stable core fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends structured fields."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = _extra_fields(record)
        request_id = getattr(record, "request_id", None)
        if request_id:
            fields["request_id"] = request_id
        if not fields:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{message} {suffix}"


def configure_logging(*, level: str = "INFO", log_format: str = "text") -> None:
    """Configure root logging with a single stdout handler.

    Existing root handlers are replaced so repeated calls do not duplicate
    output.
    """
    root = logging.getLogger()
    root.handlers.clear()
    resolved = TRACE_LEVEL if level.upper() == "TRACE" else level.upper()
    root.setLevel(resolved)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JsonFormatter() if log_format == "json" else TextFormatter())
    root.addHandler(handler)
