"""Text-generation client used to derive handler code from webhook samples.

The engine only needs "prompt in, text out"; `TextGenerator` captures that
seam so tests and alternative providers can stand in for the Gemini client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from webhook_inspector.core.logging import get_logger

logger = get_logger(__name__)

_ERROR_DETAIL_MAX_CHARS = 500


class TextGenerationError(RuntimeError):
    """Raised when the generation provider fails or returns no text."""


class TextGenerator(Protocol):
    """Anything that can turn a prompt into generated text."""

    async def generate(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class GeminiConfig:
    """Connection settings for the Google Generative Language API."""

    api_key: str
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com"
    timeout_seconds: float = 60.0


def _safe_error_detail(resp: httpx.Response) -> str:
    """Return a safe, truncated error detail string for exceptions/logs."""
    text = (resp.text or "").strip()
    if len(text) <= _ERROR_DETAIL_MAX_CHARS:
        return text
    return f"{text[: _ERROR_DETAIL_MAX_CHARS - 3]}..."


def _extract_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise TextGenerationError("Generation response is not a JSON object")
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise TextGenerationError("Generation response has no candidates")
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise TextGenerationError("Generation response has no content parts")
    text = "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text:
        raise TextGenerationError("Generation response contained no text")
    return text


class GeminiTextGenerator:
    """`TextGenerator` backed by the Gemini `generateContent` REST endpoint."""

    def __init__(
        self,
        config: GeminiConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _url(self) -> str:
        base = self._config.base_url.rstrip("/")
        return f"{base}/v1beta/models/{self._config.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        api_key = self._config.api_key.strip()
        if not api_key:
            raise TextGenerationError("Gemini API key is not configured (GEMINI_API_KEY).")
        body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(self._url(), json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise TextGenerationError(f"Generation request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TextGenerationError(f"Generation request failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = _safe_error_detail(resp)
            suffix = f" {detail}" if detail else ""
            raise TextGenerationError(f"Generation request failed: {resp.status_code}{suffix}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise TextGenerationError("Generation response is not valid JSON") from exc
        text = _extract_text(payload)
        logger.debug(
            "generation.completed",
            extra={"model": self._config.model, "prompt_chars": len(prompt), "text_chars": len(text)},
        )
        return text
