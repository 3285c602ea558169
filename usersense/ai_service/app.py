"""
AI service: HTTP surface of the enrichment orchestrator
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.config import ProviderConfig
from ..core.context import CORRELATION_HEADER, RequestContext
from ..core.exceptions import InputValidationError
from ..core.orchestrator import EnrichmentOrchestrator
from ..providers import GenerationProvider, build_provider
from ..schemas.enrichment import (
    HealthStatus,
    InsightsRequest,
    InsightsResult,
    SentimentResult,
    TagsResult,
    TextRequest,
)
from ..utils.logger import get_logger
from ..web.middleware import CorrelationIdMiddleware, get_request_context

logger = get_logger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> EnrichmentOrchestrator:
    return request.app.state.orchestrator


@router.get("/health", response_model=HealthStatus)
async def health(orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator)) -> HealthStatus:
    """Report the configured provider and a best-effort probe of its backend."""
    config = orchestrator.config
    dependency = await orchestrator.provider.probe()
    return HealthStatus(provider=config.provider, dependency=dependency, mock=config.mock_enabled)


@router.post("/enrichment/sentiment", response_model=SentimentResult, response_model_exclude_none=True)
async def sentiment(
    body: TextRequest,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator),
) -> SentimentResult:
    return await orchestrator.sentiment(body.text, ctx)


@router.post("/enrichment/tags", response_model=TagsResult, response_model_exclude_none=True)
async def tags(
    body: TextRequest,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator),
) -> TagsResult:
    return await orchestrator.tags(body.text, ctx)


@router.post("/enrichment/insights", response_model=InsightsResult, response_model_exclude_none=True)
async def insights(
    body: Optional[InsightsRequest] = None,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator),
) -> InsightsResult:
    body = body or InsightsRequest()
    return await orchestrator.insights(body.first_name, body.last_name, body.email, body.notes, ctx)


async def _input_validation_handler(request: Request, exc: InputValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # A missing body on /sentiment or /tags means no text was sent
    missing = any(err.get("type") == "missing" for err in exc.errors())
    message = "text is required" if missing else "invalid request body"
    return JSONResponse(status_code=400, content={"error": message})


def create_app(
    config: Optional[ProviderConfig] = None,
    provider: Optional[GenerationProvider] = None,
) -> FastAPI:
    """Build the AI service.

    Args:
        config: Provider configuration; read from the environment when omitted.
        provider: Adapter override (tests); selected from ``config`` when omitted.
    """
    config = config or ProviderConfig.from_env()
    provider = provider or build_provider(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("AI service starting (provider=%s, mock=%s)", config.provider, config.mock_enabled)
        yield
        await provider.aclose()

    app = FastAPI(
        title="usersense AI service",
        description="Sentiment, tags and profile insights with provider fallback",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = EnrichmentOrchestrator(config, provider)

    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )
    app.add_exception_handler(InputValidationError, _input_validation_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(router)
    return app
