"""Analyze workflow and aggregate insights over analyzed users."""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Iterable, Optional
from uuid import UUID

from ..core.exceptions import AnalysisFailedError, RecordNotFoundError
from ..schemas.enrichment import InsightsRequest
from ..schemas.users import AnalysisOutcome, TagCount, User, UsersInsights, utcnow
from ..utils.logger import get_logger
from .ai_client import EnrichmentClient
from .repository import UserRepository

logger = get_logger(__name__)

TOP_TAGS_LIMIT = 10


async def analyze_user(
    repository: UserRepository,
    client: EnrichmentClient,
    user_id: UUID,
    correlation_id: Optional[str] = None,
) -> AnalysisOutcome:
    """Enrich one user with sentiment, tags and engagement level, then persist.

    The three enrichment calls run concurrently; the record is only written
    once all of them have returned, and only its four analysis fields are
    written.  Fallback results are successful results and are stored like any
    other.

    Raises:
        RecordNotFoundError: If the user does not exist, or was deleted while
            the analysis was running.
        AnalysisFailedError: If any enrichment call raises.  Nothing is written.
    """
    log_extra = {"correlation_id": correlation_id}

    user = await repository.get_by_id(user_id)
    if user is None:
        raise RecordNotFoundError("User not found.", record_id=user_id)

    notes = user.notes or ""

    try:
        sentiment, tags, insights = await asyncio.gather(
            client.get_sentiment(notes, correlation_id),
            client.get_tags(notes, correlation_id),
            client.get_insights(
                InsightsRequest(
                    first_name=user.first_name,
                    last_name=user.last_name,
                    email=user.email,
                    notes=notes,
                ),
                correlation_id,
            ),
        )
    except Exception as exc:
        logger.error("AI analysis failed for user %s: %s", user_id, exc, exc_info=True, extra=log_extra)
        raise AnalysisFailedError("AI analysis failed. Please try again later.", record_id=user_id) from exc

    # Merged into the record as stored now, not the snapshot read above
    enriched = await repository.apply_analysis(
        user_id,
        sentiment_score=sentiment.sentiment_score,
        tags=tags.tags,
        engagement_level=insights.engagement_level,
        analyzed_at=utcnow(),
    )

    logger.info(
        "Analyzed user %s (fallback: sentiment=%s tags=%s insights=%s)",
        user_id, sentiment.fallback, tags.fallback, insights.fallback,
        extra=log_extra,
    )

    return AnalysisOutcome(
        id=enriched.id,
        sentiment_score=enriched.sentiment_score,
        label=sentiment.label,
        tags=enriched.tags or [],
        engagement_level=enriched.engagement_level,
        last_analyzed_at=enriched.last_analyzed_at,
        summary=insights.summary,
        recommended_actions=insights.recommended_actions,
        fallback=sentiment.fallback or tags.fallback or insights.fallback,
    )


def summarize_users(users: Iterable[User]) -> UsersInsights:
    """Aggregate stored analyses without calling the AI service.

    Tags are counted case-insensitively; each bucket is reported under the
    first spelling seen.
    """
    users = list(users)
    analyzed = sum(1 for user in users if user.last_analyzed_at is not None)

    scores = [user.sentiment_score for user in users if user.sentiment_score is not None]
    average = sum(scores) / len(scores) if scores else 0.0

    counts: Counter[str] = Counter()
    spelling: dict[str, str] = {}
    for user in users:
        for tag in user.tags or []:
            key = tag.casefold()
            spelling.setdefault(key, tag)
            counts[key] += 1

    top_tags = [TagCount(tag=spelling[key], count=count) for key, count in counts.most_common(TOP_TAGS_LIMIT)]

    return UsersInsights(
        total_users=len(users),
        analyzed_users=analyzed,
        average_sentiment=average,
        top_tags=top_tags,
    )
