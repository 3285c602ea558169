"""EnrichmentOrchestrator — prompt construction and response envelopes over a provider."""

from __future__ import annotations

import json
import math
from typing import Any, Mapping, Optional

from ..providers.base import GenerationProvider, GenerationResult
from ..schemas.enrichment import InsightsResult, SentimentResult, TagsResult
from ..utils.logger import get_logger
from .config import ProviderConfig
from .context import RequestContext
from .exceptions import InputValidationError

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Prompts and fallback shapes
# ---------------------------------------------------------------------------

SENTIMENT_PROMPT = """\
Analyze sentiment of this text and return JSON only:
{{"sentimentScore": -1..1, "label":"Positive|Neutral|Negative"}}
Text: {text}
"""

TAGS_PROMPT = """\
Extract 3-8 short themes/tags. Return JSON only:
{{"tags":["tag1","tag2",...]}}
Rules: tags are 1-3 words each.
Text: {text}
"""

INSIGHTS_PROMPT = """\
Given the user profile, generate JSON only:
{{
  "summary": "1-2 lines",
  "engagementLevel": "Low|Medium|High",
  "recommendedActions": ["action1","action2"]
}}
User: {profile}
"""

SENTIMENT_FALLBACK: dict[str, Any] = {"sentimentScore": 0, "label": "Neutral"}
TAGS_FALLBACK: dict[str, Any] = {"tags": []}
INSIGHTS_FALLBACK: dict[str, Any] = {
    "summary": "",
    "engagementLevel": "Medium",
    "recommendedActions": [],
}


# ---------------------------------------------------------------------------
# Coercion helpers: each returns (value, substituted)
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _coerce_number(value: Any, default: float) -> tuple[float, bool]:
    if value is None:
        return default, True
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default, True
    if not math.isfinite(number):
        return default, True
    return number, False


def _coerce_text(value: Any, default: str) -> tuple[str, bool]:
    if value is None:
        return default, True
    return _as_text(value), False


def _coerce_text_list(value: Any) -> tuple[list[str], bool]:
    if not isinstance(value, list):
        return [], True
    return [_as_text(item) for item in value], False


def _require_text(text: Optional[str]) -> str:
    if not text:
        raise InputValidationError("text is required", field="text")
    return text


class EnrichmentOrchestrator:
    """Runs the three enrichment operations against the configured provider.

    The provider is selected once at startup (see
    :func:`usersense.providers.build_provider`) and held for the lifetime of
    the orchestrator.  Operations never raise for backend problems; the only
    exception that escapes is :class:`InputValidationError`.
    """

    def __init__(self, config: ProviderConfig, provider: GenerationProvider):
        self.config = config
        self.provider = provider

    @property
    def provider_name(self) -> str:
        return self.config.provider

    # -- internals -------------------------------------------------------

    async def _generate(
        self,
        operation: str,
        prompt: str,
        fallback: Mapping[str, Any],
        ctx: RequestContext,
    ) -> GenerationResult:
        logger.debug("%s request via %s", operation, self.provider.name, extra=ctx.log_extra)
        result = await self.provider.generate(prompt, fallback)
        if result.error:
            logger.warning(
                "%s fell back after provider failure: %s", operation, result.error, extra=ctx.log_extra,
            )
        elif result.fallback:
            logger.info("%s answered with fallback values", operation, extra=ctx.log_extra)
        return result

    def _envelope(self, result: GenerationResult, substituted: bool, ctx: RequestContext) -> dict[str, Any]:
        return {
            "fallback": result.fallback or substituted,
            "provider": self.provider_name,
            "correlation_id": ctx.correlation_id,
            "error": result.error if result.fallback else None,
        }

    # -- operations ------------------------------------------------------

    async def sentiment(self, text: Optional[str], ctx: RequestContext) -> SentimentResult:
        """Score the sentiment of ``text``.

        Raises:
            InputValidationError: If ``text`` is missing or empty.
        """
        text = _require_text(text)
        result = await self._generate("sentiment", SENTIMENT_PROMPT.format(text=text), SENTIMENT_FALLBACK, ctx)

        score, score_sub = _coerce_number(result.data.get("sentimentScore"), 0.0)
        label, label_sub = _coerce_text(result.data.get("label"), "Neutral")

        return SentimentResult(
            sentiment_score=score,
            label=label,
            **self._envelope(result, score_sub or label_sub, ctx),
        )

    async def tags(self, text: Optional[str], ctx: RequestContext) -> TagsResult:
        """Extract short themes from ``text``.

        Raises:
            InputValidationError: If ``text`` is missing or empty.
        """
        text = _require_text(text)
        result = await self._generate("tags", TAGS_PROMPT.format(text=text), TAGS_FALLBACK, ctx)

        tags, tags_sub = _coerce_text_list(result.data.get("tags"))

        return TagsResult(tags=tags, **self._envelope(result, tags_sub, ctx))

    async def insights(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        notes: Optional[str],
        ctx: RequestContext,
    ) -> InsightsResult:
        """Summarize a user profile; every argument may be empty."""
        profile = json.dumps(
            {"firstName": first_name, "lastName": last_name, "email": email, "notes": notes}
        )
        result = await self._generate("insights", INSIGHTS_PROMPT.format(profile=profile), INSIGHTS_FALLBACK, ctx)

        summary, summary_sub = _coerce_text(result.data.get("summary"), "")
        level, level_sub = _coerce_text(result.data.get("engagementLevel"), "Medium")
        actions, actions_sub = _coerce_text_list(result.data.get("recommendedActions"))

        return InsightsResult(
            summary=summary,
            engagement_level=level,
            recommended_actions=actions,
            **self._envelope(result, summary_sub or level_sub or actions_sub, ctx),
        )
