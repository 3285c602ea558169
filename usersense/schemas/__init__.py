"""Pydantic schemas for both services.

- WireModel: camelCase-aliased base class
- TextRequest / InsightsRequest: enrichment request bodies
- SentimentResult / TagsResult / InsightsResult: enrichment envelopes
- User / UserInput / AnalysisOutcome / UsersInsights: user-service records
"""

from .base import WireModel
from .enrichment import (
    EnrichmentEnvelope,
    HealthStatus,
    InsightsRequest,
    InsightsResult,
    SentimentResult,
    TagsResult,
    TextRequest,
)
from .users import AnalysisOutcome, TagCount, User, UserInput, UsersInsights

__all__ = [
    "WireModel",
    "TextRequest",
    "InsightsRequest",
    "EnrichmentEnvelope",
    "SentimentResult",
    "TagsResult",
    "InsightsResult",
    "HealthStatus",
    "User",
    "UserInput",
    "AnalysisOutcome",
    "TagCount",
    "UsersInsights",
]
