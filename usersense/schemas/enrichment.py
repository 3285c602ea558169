"""Enrichment wire schemas.

Defines the contract between the AI service and its callers: what is posted
to ``/enrichment/*`` and the envelope that always comes back, fallback or not.
"""

from typing import Optional

from pydantic import Field

from .base import WireModel


class TextRequest(WireModel):
    """Body of ``POST /enrichment/sentiment`` and ``POST /enrichment/tags``.

    ``text`` is optional at the schema level so a missing value reaches the
    orchestrator and is reported as a validation error with a clear message.
    """

    text: Optional[str] = None


class InsightsRequest(WireModel):
    """Body of ``POST /enrichment/insights``; every field may be absent or empty."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class EnrichmentEnvelope(WireModel):
    """Fields present on every enrichment response.

    Attributes:
        fallback: True when any value in the response was substituted.
        provider: Configured provider name (``ollama``, ``gemini`` or ``mock``).
        correlation_id: Correlation identifier of the request.
        error: Failure description; only present when a real failure caused
            the fallback (never for mock responses).
    """

    fallback: bool = False
    provider: str = ""
    correlation_id: str = ""
    error: Optional[str] = None


class SentimentResult(EnrichmentEnvelope):
    """Sentiment score (conceptually -1..1, not enforced) and a free-string label."""

    sentiment_score: float = 0.0
    label: str = "Neutral"


class TagsResult(EnrichmentEnvelope):
    """Short themes extracted from the text, in model order."""

    tags: list[str] = Field(default_factory=list)


class InsightsResult(EnrichmentEnvelope):
    """Narrative insights about a user profile."""

    summary: str = ""
    engagement_level: str = "Medium"
    recommended_actions: list[str] = Field(default_factory=list)


class HealthStatus(WireModel):
    """Body of the AI service's ``GET /health``."""

    status: str = "ok"
    provider: str
    dependency: str
    mock: bool
