"""Mock provider — answers every request with the fallback shape, no backend call."""

from __future__ import annotations

from typing import Any, Mapping

from .base import DEPENDENCY_NOT_APPLICABLE, GenerationResult


class MockProvider:
    """Used when mock mode is enabled or generation is deliberately disabled.

    Results are flagged as fallback but carry no error: nothing failed.
    """

    name = "mock"

    async def generate(self, prompt: str, fallback: Mapping[str, Any]) -> GenerationResult:
        return GenerationResult.from_fallback(fallback)

    async def probe(self) -> str:
        return DEPENDENCY_NOT_APPLICABLE

    async def aclose(self) -> None:
        return None
