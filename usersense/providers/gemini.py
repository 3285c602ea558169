"""Google Gemini provider adapter — hosted generation API via google-genai."""

from __future__ import annotations

import asyncio
import re
from typing import Any, Mapping

from ..utils.logger import get_logger
from .base import (
    DEPENDENCY_CONFIGURED,
    DEPENDENCY_MISSING_KEY,
    GenerationResult,
    LLMAPIError,
    build_prompt,
    parse_output,
)

logger = get_logger(__name__)

MISSING_KEY_ERROR = "GEMINI_API_KEY missing"

_RATE_LIMIT_MARKERS = ("too many requests", "rate limit", "resource_exhausted")

# "429" only as a standalone status token, never inside a longer number or model id
_STATUS_429 = re.compile(r"(?<![\w.-])429(?![\w-]|\.\d)")


def _is_rate_limit(exc: BaseException) -> bool:
    if getattr(exc, "code", None) == 429 or getattr(exc, "status_code", None) == 429:
        return True
    message = str(exc).lower()
    if _STATUS_429.search(message):
        return True
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


class GeminiProvider:
    """Adapter for Google's Gemini models.

    Rate limiting is retried exactly once after ``retry_delay`` seconds; any
    other failure, or a second rate limit, produces a fallback result carrying
    the error message.
    """

    name = "gemini"
    max_attempts = 2

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.0-flash-lite",
        retry_delay: float = 2.0,
    ):
        self._api_key = api_key or ""
        self.model = model
        self.retry_delay = retry_delay
        self._client: Any = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def _complete(self, prompt: str) -> str:
        """One generation call; SDK errors are normalised to :class:`LLMAPIError`."""
        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
            return response.text or ""
        except Exception as exc:
            # Google SDK doesn't have typed error classes as clean as OpenAI/Anthropic
            raise LLMAPIError(
                str(exc),
                status_code=429 if _is_rate_limit(exc) else getattr(exc, "code", None),
                is_rate_limit=_is_rate_limit(exc),
            ) from exc

    async def generate(self, prompt: str, fallback: Mapping[str, Any]) -> GenerationResult:
        if not self.configured:
            return GenerationResult.from_fallback(fallback, MISSING_KEY_ERROR)

        full_prompt = build_prompt(prompt)

        for attempt in range(1, self.max_attempts + 1):
            try:
                text = await self._complete(full_prompt)
                return parse_output(text, fallback)
            except LLMAPIError as exc:
                logger.error("Gemini call failed (attempt %d): %s", attempt, exc)
                if exc.is_rate_limit and attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)
                    continue
                return GenerationResult.from_fallback(fallback, str(exc))

        return GenerationResult.from_fallback(fallback)

    async def probe(self) -> str:
        return DEPENDENCY_CONFIGURED if self.configured else DEPENDENCY_MISSING_KEY

    async def aclose(self) -> None:
        self._client = None
