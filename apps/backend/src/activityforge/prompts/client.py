"""Thin client for the external generation service.

Single-shot request/response; retrying a whole generation attempt is the
caller's decision.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from .builder import Prompt

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class GenerationServiceError(Exception):
    """Raised when the generation service cannot produce an answer."""

    def __init__(self, message: str, error_type: str = "service_error"):
        self.error_type = error_type
        super().__init__(message)


class GenerationClient:
    """Posts chat-completion requests and returns the first choice's text."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        http_client: httpx.AsyncClient,
        temperature: float = 0.2,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.http = http_client
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> GenerationClient:
        if not settings.generation_api_key:
            raise GenerationServiceError("Generation service is not configured", "not_configured")
        return cls(
            settings.generation_api_key,
            settings.generation_base_url,
            settings.generation_model,
            http_client or httpx.AsyncClient(timeout=settings.generation_timeout),
            temperature=settings.generation_temperature,
        )

    async def complete(self, prompt: Prompt) -> str:
        try:
            resp = await self.http.post(
                self._url,
                headers=self._headers,
                json={
                    "model": self.model,
                    "messages": prompt.messages(),
                    "temperature": self.temperature,
                },
            )
        except httpx.HTTPError as exc:
            raise GenerationServiceError(f"Generation service request failed: {exc}") from exc

        if resp.status_code == 429:
            raise GenerationServiceError("Rate limit exceeded. Please try again in a moment.", "rate_limit")
        if resp.status_code == 402:
            raise GenerationServiceError("Generation credits exhausted.", "credits_exhausted")
        if resp.status_code >= 400:
            logger.error("Generation service error %s: %s", resp.status_code, resp.text[:500])
            raise GenerationServiceError(f"Generation service returned HTTP {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise GenerationServiceError("Generation service returned an empty response", "empty_response")
        return content

    async def aclose(self) -> None:
        await self.http.aclose()
