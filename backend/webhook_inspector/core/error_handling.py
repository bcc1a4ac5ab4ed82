"""Request correlation and JSON error responses for the webhook API.

Every HTTP response carries an `X-Request-Id` header (the caller's own value
when supplied) and every error body has the shape
`{"detail": ..., "request_id": ...}`. Webhook engine failures put a
`{"code": ..., "message": ...}` object in `detail` with the status taken from
the webhook error policy table; validation failures put the field errors
there; anything unexpected becomes a logged, generic 500.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import perf_counter
from typing import TYPE_CHECKING, Any, Final
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from webhook_inspector.core.logging import (
    TRACE_LEVEL,
    get_logger,
    reset_request_id,
    reset_request_route_context,
    set_request_id,
    set_request_route_context,
)
from webhook_inspector.services.webhooks.exceptions import (
    WebhookError,
    map_webhook_error_to_http_exception,
)

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Mapping

    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER: Final[str] = "X-Request-Id"
HEALTH_CHECK_PATHS: Final[frozenset[str]] = frozenset({"/health", "/healthz", "/readyz"})
INTERNAL_ERROR_DETAIL: Final[str] = "Internal Server Error"


@dataclass
class _Exchange:
    """Timing and outcome of one HTTP exchange, for access logging."""

    method: str
    path: str
    client_ip: str | None
    started_at: float = field(default_factory=perf_counter)
    status_code: int | None = None

    def elapsed_ms(self) -> int:
        return int((perf_counter() - self.started_at) * 1000)

    def fields(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "status_code": self.status_code,
            "duration_ms": self.elapsed_ms(),
            "client_ip": self.client_ip,
        }


class RequestIdMiddleware:
    """ASGI middleware assigning a request id and logging each exchange."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        header_name: str = REQUEST_ID_HEADER,
        slow_request_ms: int = 0,
        include_health_logs: bool = False,
    ) -> None:
        self._app = app
        self._header = header_name.lower().encode("latin-1")
        self._slow_request_ms = slow_request_ms
        self._include_health_logs = include_health_logs

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        client = scope.get("client")
        exchange = _Exchange(
            method=str(scope.get("method") or "UNKNOWN").upper(),
            path=str(scope.get("path") or ""),
            client_ip=client[0] if isinstance(client, tuple) and client else None,
        )
        logged = self._include_health_logs or exchange.path not in HEALTH_CHECK_PATHS
        request_id = self._resolve_request_id(scope)
        id_token = set_request_id(request_id)
        route_tokens = set_request_route_context(exchange.method, exchange.path)
        if logged:
            logger.log(
                TRACE_LEVEL,
                "http.request.start",
                extra={
                    "method": exchange.method,
                    "path": exchange.path,
                    "client_ip": exchange.client_ip,
                },
            )

        async def send_tagged(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers: list[tuple[bytes, bytes]] = message.setdefault("headers", [])
                if all(key.lower() != self._header for key, _ in headers):
                    headers.append((self._header, request_id.encode("latin-1")))
                status = message.get("status")
                exchange.status_code = status if isinstance(status, int) else 500
                if logged:
                    self._log_exchange(exchange)
            await send(message)

        try:
            await self._app(scope, receive, send_tagged)
        finally:
            if logged and exchange.status_code is None:
                logger.warning("http.request.incomplete", extra=exchange.fields())
            reset_request_route_context(route_tokens)
            reset_request_id(id_token)

    def _log_exchange(self, exchange: _Exchange) -> None:
        extra = exchange.fields()
        status_code = exchange.status_code or 0
        level = "error" if status_code >= 500 else "warning" if status_code >= 400 else "debug"
        getattr(logger, level)("http.request.complete", extra=extra)
        if self._slow_request_ms and extra["duration_ms"] >= self._slow_request_ms:
            logger.warning(
                "http.request.slow",
                extra={**extra, "slow_threshold_ms": self._slow_request_ms},
            )

    def _resolve_request_id(self, scope: Scope) -> str:
        supplied = next(
            (value for key, value in scope.get("headers", []) if key.lower() == self._header),
            b"",
        )
        request_id = supplied.decode("latin-1").strip() or uuid4().hex
        # Exposed to handlers as `request.state.request_id`.
        scope.setdefault("state", {})["request_id"] = request_id
        return request_id


def install_error_handling(
    app: FastAPI,
    *,
    slow_request_ms: int = 0,
    include_health_logs: bool = False,
) -> None:
    """Attach the request-id middleware and every JSON error handler to `app`."""
    # Last-added middleware is outermost, so CORS preflights are tagged too.
    app.add_middleware(
        RequestIdMiddleware,
        slow_request_ms=slow_request_ms,
        include_health_logs=include_health_logs,
    )
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(ResponseValidationError, _handle_response_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(WebhookError, _handle_webhook_error)
    app.add_exception_handler(Exception, _handle_unexpected)


def _json_error(
    request: Request,
    status_code: int,
    detail: object,
    *,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(detail=detail, request_id=_get_request_id(request)),
        headers=dict(headers) if headers else None,
    )


def _expect(exc: Exception, kind: type[Exception]) -> None:
    if not isinstance(exc, kind):
        msg = f"Expected {kind.__name__}, got {type(exc).__name__}"
        raise TypeError(msg)


async def _handle_request_validation(request: Request, exc: Exception) -> JSONResponse:
    _expect(exc, RequestValidationError)
    return _json_error(request, 422, exc.errors())  # type: ignore[attr-defined]


async def _handle_response_validation(request: Request, exc: Exception) -> JSONResponse:
    _expect(exc, ResponseValidationError)
    logger.exception(
        "http.response.invalid",
        extra={
            "method": request.method,
            "path": request.url.path,
            "errors": exc.errors(),  # type: ignore[attr-defined]
        },
    )
    return _json_error(request, 500, INTERNAL_ERROR_DETAIL)


async def _handle_http_exception(request: Request, exc: Exception) -> JSONResponse:
    _expect(exc, StarletteHTTPException)
    http_exc: StarletteHTTPException = exc  # type: ignore[assignment]
    return _json_error(request, http_exc.status_code, http_exc.detail, headers=http_exc.headers)


async def _handle_webhook_error(request: Request, exc: Exception) -> JSONResponse:
    _expect(exc, WebhookError)
    webhook_exc: WebhookError = exc  # type: ignore[assignment]
    mapped = map_webhook_error_to_http_exception(webhook_exc)
    log = logger.error if mapped.status_code >= 500 else logger.info
    log(
        "webhook.request.failed",
        extra={
            "code": webhook_exc.code.value,
            "status_code": mapped.status_code,
            "method": request.method,
            "path": request.url.path,
        },
    )
    return _json_error(request, mapped.status_code, mapped.detail)


async def _handle_unexpected(request: Request, _exc: Exception) -> JSONResponse:
    logger.exception(
        "http.request.unhandled",
        extra={"method": request.method, "path": request.url.path},
    )
    request_id = _get_request_id(request)
    # Raised past the middleware's send hook, so the id header is set here.
    return _json_error(
        request,
        500,
        INTERNAL_ERROR_DETAIL,
        headers={REQUEST_ID_HEADER: request_id} if request_id else None,
    )


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    return request_id if isinstance(request_id, str) and request_id else None


def _error_payload(*, detail: object, request_id: str | None) -> dict[str, object]:
    payload: dict[str, Any] = {"detail": _json_safe(detail)}
    if request_id:
        payload["request_id"] = request_id
    return payload


def _json_safe(value: object) -> object:
    """Coerce error details into JSON-serializable values."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
