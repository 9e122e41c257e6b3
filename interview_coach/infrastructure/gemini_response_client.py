"""Gemini implementation of the ResponseGenerator protocol."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..domain.entities.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class GeminiConfig:
    """Configuration for the Gemini response client."""
    api_key: Optional[str] = None
    model: str = "gemini-1.5-flash-latest"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 30.0


def extract_text(data: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` from a generateContent response.

    Raises:
        UpstreamError: If the path is missing or the text is empty.
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamError("Generation response carried no text") from e

    if not isinstance(text, str) or not text.strip():
        raise UpstreamError("Generation response carried no text")
    return text


class GeminiResponseClient:
    """Sends prompts to the Gemini ``generateContent`` endpoint.

    A failed call is raised immediately as ``UpstreamError``; retrying is
    left to the caller.
    """

    def __init__(
        self,
        config: Optional[GeminiConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            config: Optional configuration; defaults to ``GeminiConfig()``.
            client: Optional shared ``httpx.AsyncClient``. When omitted one is
                created lazily and closed by ``close()``.
        """
        self.config = config or GeminiConfig()
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["x-goog-api-key"] = self.config.api_key

        logger.info(f"Requesting completion from {self.config.model} ({len(prompt)} chars)")
        try:
            response = await self._get_client().post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Error calling generation service: {e}")
            raise UpstreamError("Failed to fetch response from AI") from e

        if not response.is_success:
            logger.error(f"Generation service returned {response.status_code}: {response.text[:200]}")
            raise UpstreamError(f"AI service returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("AI service returned a non-JSON body") from e

        return extract_text(data)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client
