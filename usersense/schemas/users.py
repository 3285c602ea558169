"""User record schemas owned by the user service."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import Field

from .base import WireModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserInput(WireModel):
    """Editable user fields accepted by create and update."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    notes: str = ""


class User(UserInput):
    """A persisted user record.

    The enrichment fields stay ``None`` until the record has been analyzed.
    """

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=utcnow)

    sentiment_score: Optional[float] = None
    tags: Optional[list[str]] = None
    last_analyzed_at: Optional[datetime] = None
    engagement_level: Optional[str] = None


class AnalysisOutcome(WireModel):
    """Response of ``POST /api/users/{id}/analyze``."""

    id: UUID
    sentiment_score: Optional[float] = None
    label: str
    tags: list[str] = Field(default_factory=list)
    engagement_level: Optional[str] = None
    last_analyzed_at: Optional[datetime] = None
    summary: str = ""
    recommended_actions: list[str] = Field(default_factory=list)
    fallback: bool = False


class TagCount(WireModel):
    tag: str
    count: int


class UsersInsights(WireModel):
    """Response of ``GET /api/users/insights``: aggregates over stored analyses."""

    total_users: int = 0
    analyzed_users: int = 0
    average_sentiment: float = 0.0
    top_tags: list[TagCount] = Field(default_factory=list)
