"""Minimal Gemini API wrapper with retry handling."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from ..logging_setup import get_logger

logger = get_logger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class GeminiError(Exception):
    """Base exception for Gemini client errors."""


class GeminiRequestError(GeminiError):
    """Raised when Gemini API request fails."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class GeminiResponseError(GeminiError):
    """Raised when Gemini response shape cannot be parsed."""


class GeminiClient:
    """Thin client for Gemini `generateContent`, built once per process."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int = 25,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.transport = transport

    async def generate_text(
        self,
        system_prompt: str,
        user_content: str,
        *,
        temperature: float = 0.3,
    ) -> str:
        """Single-turn call; returns the joined text parts (possibly empty)."""
        body = {
            "system_instruction": {
                "parts": [{"text": system_prompt}],
            },
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": user_content}],
                }
            ],
            "generationConfig": {
                "temperature": temperature,
            },
        }

        url = f"{GEMINI_BASE_URL}/{self.model}:generateContent"
        params = {"key": self.api_key}

        last_error: Exception | None = None
        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                    response = await client.post(url, params=params, json=body)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                last_error = exc
                if attempt < self.max_retries:
                    logger.warning("Gemini transport error (attempt %d): %s", attempt + 1, exc)
                    await asyncio.sleep(0.5 * (2**attempt))
                    continue
                raise GeminiRequestError(503, "Gemini request failed") from exc

            if response.status_code in RETRYABLE_STATUS and attempt < self.max_retries:
                logger.warning("Gemini returned %d (attempt %d), retrying", response.status_code, attempt + 1)
                await asyncio.sleep(0.5 * (2**attempt))
                continue

            if response.status_code >= 400:
                raise GeminiRequestError(response.status_code, response.text)

            try:
                payload = response.json()
            except ValueError as exc:
                raise GeminiResponseError("Invalid JSON from Gemini") from exc

            return self._parse_response(payload)

        raise GeminiRequestError(503, f"Gemini request failed: {last_error or 'unknown error'}")

    def _parse_response(self, payload: dict[str, Any]) -> str:
        candidates = payload.get("candidates") or []
        if not candidates:
            raise GeminiResponseError("Gemini response missing candidates")

        candidate = candidates[0] or {}
        parts = ((candidate.get("content") or {}).get("parts")) or []

        text_parts: list[str] = []
        for part in parts:
            text = part.get("text")
            if isinstance(text, str) and text.strip():
                text_parts.append(text.strip())

        return "\n".join(text_parts).strip()
