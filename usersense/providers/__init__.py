"""Generation provider adapters and the startup-time provider factory.

Usage:
    from usersense.providers import build_provider
    provider = build_provider(ProviderConfig.from_env())
"""

from __future__ import annotations

from ..core.config import PROVIDER_GEMINI, ProviderConfig
from .base import GenerationProvider, GenerationResult, LLMAPIError
from .gemini import GeminiProvider
from .mock import MockProvider
from .ollama import OllamaProvider


def build_provider(config: ProviderConfig) -> GenerationProvider:
    """Select the adapter for ``config``; called once at process start.

    Mock mode wins over the selected provider; anything that is not the hosted
    provider uses the local Ollama server.
    """
    if config.mock_enabled:
        return MockProvider()
    if config.provider == PROVIDER_GEMINI:
        return GeminiProvider(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            retry_delay=config.rate_limit_backoff,
        )
    return OllamaProvider(
        base_url=config.ollama_url,
        model=config.ollama_model,
        timeout=config.request_timeout,
    )


__all__ = [
    "GenerationProvider",
    "GenerationResult",
    "LLMAPIError",
    "OllamaProvider",
    "GeminiProvider",
    "MockProvider",
    "build_provider",
]
