"""
Text Generation Client
======================
Single-completion client for the Claude Messages API, used by the
roadmap assembler.

One call, one reply: a system instruction plus one user prompt go out,
the text blocks of the reply are joined and returned. There is no
streaming or retry; callers extract whatever structure they need from
the free text.

The prompt carries only aggregated statistics and affirmation text.
No user ID, email or entry IDs are ever included.
"""

from __future__ import annotations

import logging

import httpx

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class TextGenerationError(RuntimeError):
    """The completion could not be obtained (transport, HTTP status or empty reply)."""


class TextGenerationService:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._api_url = ANTHROPIC_MESSAGES_URL

    async def generate(self, system: str, prompt: str) -> str:
        """Return the model's reply text. Raises TextGenerationError on failure."""
        if not self._settings.anthropic_api_key:
            raise TextGenerationError("Anthropic API key is not configured")

        headers = {
            "x-api-key": self._settings.anthropic_api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self._settings.anthropic_model,
            "max_tokens": self._settings.anthropic_max_tokens,
            "temperature": self._settings.anthropic_temperature,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.text_generation_timeout_seconds
            ) as client:
                response = await client.post(self._api_url, headers=headers, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Claude API returned %s", exc.response.status_code)
            raise TextGenerationError(
                f"Text generation failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Claude API request failed: %s", exc)
            raise TextGenerationError(f"Text generation request failed: {exc}") from exc

        data = response.json()
        text_parts = [
            block["text"]
            for block in data.get("content", [])
            if block.get("type") == "text"
        ]
        if not text_parts:
            raise TextGenerationError("Text generation returned no text")
        return "\n".join(text_parts)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_service: TextGenerationService | None = None


def get_text_generation_service() -> TextGenerationService:
    global _default_service
    if _default_service is None:
        _default_service = TextGenerationService()
    return _default_service
