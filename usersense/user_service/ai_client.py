"""Consumer-side client for the AI service's ``/enrichment`` endpoints."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Type, TypeVar, runtime_checkable

import httpx
from pydantic import ValidationError

from ..core.context import CORRELATION_HEADER
from ..core.exceptions import EnrichmentClientError
from ..schemas.base import WireModel
from ..schemas.enrichment import InsightsRequest, InsightsResult, SentimentResult, TagsResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT", bound=WireModel)


@runtime_checkable
class EnrichmentClient(Protocol):
    """What the user service needs from the AI service."""

    async def get_sentiment(self, text: str, correlation_id: Optional[str] = None) -> SentimentResult: ...

    async def get_tags(self, text: str, correlation_id: Optional[str] = None) -> TagsResult: ...

    async def get_insights(
        self, request: InsightsRequest, correlation_id: Optional[str] = None
    ) -> InsightsResult: ...


class HttpEnrichmentClient:
    """httpx implementation of :class:`EnrichmentClient`.

    Forwards the caller's correlation id in ``X-Correlation-ID``.  Any
    non-success status, transport failure or unparseable body raises
    :class:`EnrichmentClientError`.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
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

    async def _post(
        self,
        path: str,
        body: dict[str, Any],
        result_type: Type[ResultT],
        correlation_id: Optional[str],
    ) -> ResultT:
        headers = {}
        if correlation_id and correlation_id.strip():
            headers[CORRELATION_HEADER] = correlation_id

        try:
            response = await self._get_client().post(path, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise EnrichmentClientError(f"AI service call to {path} failed: {exc}") from exc

        if not response.is_success:
            raise EnrichmentClientError(
                f"AI service returned {response.status_code} for {path}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return result_type.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise EnrichmentClientError(f"AI service returned an unreadable body for {path}: {exc}") from exc

    async def get_sentiment(self, text: str, correlation_id: Optional[str] = None) -> SentimentResult:
        return await self._post("/enrichment/sentiment", {"text": text}, SentimentResult, correlation_id)

    async def get_tags(self, text: str, correlation_id: Optional[str] = None) -> TagsResult:
        return await self._post("/enrichment/tags", {"text": text}, TagsResult, correlation_id)

    async def get_insights(
        self, request: InsightsRequest, correlation_id: Optional[str] = None
    ) -> InsightsResult:
        return await self._post("/enrichment/insights", request.to_wire(), InsightsResult, correlation_id)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
