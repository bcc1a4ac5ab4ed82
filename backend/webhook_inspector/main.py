"""FastAPI application factory and ASGI entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from webhook_inspector.api.capture import build_capture_router
from webhook_inspector.api.webhooks import router as webhooks_router
from webhook_inspector.core.config import Settings, settings
from webhook_inspector.core.error_handling import install_error_handling
from webhook_inspector.core.ids import MonotonicIdGenerator, default_id_generator
from webhook_inspector.core.logging import configure_logging, get_logger
from webhook_inspector.db.session import build_engine, build_session_maker, init_db
from webhook_inspector.integrations.text_generation import (
    GeminiConfig,
    GeminiTextGenerator,
    TextGenerator,
)
from webhook_inspector.schemas.webhooks import OkResponse
from webhook_inspector.services.webhooks.store import WebhookStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


def _default_text_generator(app_settings: Settings) -> TextGenerator:
    return GeminiTextGenerator(
        GeminiConfig(
            api_key=app_settings.gemini_api_key,
            model=app_settings.gemini_model,
            base_url=app_settings.gemini_base_url,
            timeout_seconds=app_settings.generation_timeout_seconds,
        ),
    )


def create_app(
    app_settings: Settings = settings,
    *,
    store: WebhookStore | None = None,
    text_generator: TextGenerator | None = None,
    id_generator: MonotonicIdGenerator | None = None,
) -> FastAPI:
    """Build the application, wiring injected collaborators or defaults."""
    configure_logging(level=app_settings.log_level, log_format=app_settings.log_format)

    engine = None
    if store is None:
        engine = build_engine(app_settings.database_url)
        store = WebhookStore(build_session_maker(engine))

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if engine is not None and app_settings.db_auto_migrate:
            await init_db(engine)
        logger.info(
            "app.started",
            extra={
                "environment": app_settings.environment,
                "capture_path": app_settings.capture_path,
            },
        )
        yield
        if engine is not None:
            await engine.dispose()

    app = FastAPI(title="Webhook Inspector", lifespan=lifespan)
    app.state.webhook_store = store
    app.state.text_generator = text_generator or _default_text_generator(app_settings)
    app.state.id_generator = id_generator or default_id_generator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handling(
        app,
        slow_request_ms=app_settings.request_log_slow_ms,
        include_health_logs=app_settings.request_log_include_health,
    )

    @app.get("/healthz", response_model=OkResponse, tags=["health"])
    async def healthz() -> OkResponse:
        return OkResponse()

    app.include_router(webhooks_router)
    app.include_router(
        build_capture_router(app_settings.capture_path, app_settings.capture_status_code),
    )
    return app


app = create_app()
