"""Ollama provider adapter — local model server reached over HTTP."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from ..utils.logger import get_logger
from .base import (
    DEPENDENCY_REACHABLE,
    DEPENDENCY_UNREACHABLE,
    GenerationResult,
    build_prompt,
    parse_output,
)

logger = get_logger(__name__)

PROBE_TIMEOUT = 5.0


class OllamaProvider:
    """Adapter for a local Ollama server (``/api/generate``, non-streaming).

    A non-2xx status or a transport error is returned as a fallback with the
    error recorded.  There is no retry.
    """

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs: dict[str, Any] = {"base_url": self.base_url, "timeout": self.timeout}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def generate(self, prompt: str, fallback: Mapping[str, Any]) -> GenerationResult:
        payload = {
            "model": self.model,
            "prompt": build_prompt(prompt),
            "stream": False,
        }

        try:
            response = await self._get_client().post("/api/generate", json=payload)
            if not response.is_success:
                error = f"Ollama HTTP error {response.status_code}: {response.text[:200]}"
                logger.error(error)
                return GenerationResult.from_fallback(fallback, error)

            data = response.json()
            text = data.get("response") if isinstance(data, dict) else None
            return parse_output(text, fallback)

        except httpx.HTTPError as exc:
            logger.error("Ollama call failed: %s", exc)
            return GenerationResult.from_fallback(fallback, f"Ollama call failed: {exc}")
        except Exception as exc:
            logger.error("Ollama call failed: %s", exc, exc_info=True)
            return GenerationResult.from_fallback(fallback, f"Ollama call failed: {exc}")

    async def probe(self) -> str:
        """``reachable`` when ``/api/tags`` answers with a success status."""
        try:
            response = await self._get_client().get("/api/tags", timeout=PROBE_TIMEOUT)
        except Exception as exc:
            # Also covers a malformed OLLAMA_URL (httpx.InvalidURL is not an HTTPError)
            logger.warning("Ollama health probe failed: %s", exc)
            return DEPENDENCY_UNREACHABLE
        return DEPENDENCY_REACHABLE if response.is_success else DEPENDENCY_UNREACHABLE

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
