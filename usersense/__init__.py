"""
usersense - user records with AI enrichment

Two FastAPI services: a user-records service persisting to a JSON file, and
an AI service that turns free text into sentiment, tags and profile insights
through a pluggable LLM provider (local Ollama, hosted Gemini, or mock), with
fallback values whenever the provider cannot deliver.
"""

from .core import (
    EnrichmentError,
    InputValidationError,
    ProviderConfig,
    RequestContext,
    UserServiceConfig,
    extract_json,
)

__version__ = "0.1.0"

__all__ = [
    'ProviderConfig',
    'UserServiceConfig',
    'RequestContext',
    'EnrichmentError',
    'InputValidationError',
    'extract_json',
]
