"""
User service: CRUD over the JSON record store plus AI analysis
"""
from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.config import UserServiceConfig
from ..core.context import RequestContext
from ..core.exceptions import (
    AnalysisFailedError,
    DuplicateEmailError,
    DuplicateRecordError,
    EnrichmentError,
    RecordNotFoundError,
)
from ..schemas.users import AnalysisOutcome, User, UserInput, UsersInsights
from ..utils.logger import get_logger
from ..web.middleware import CorrelationIdMiddleware, get_request_context
from .ai_client import EnrichmentClient, HttpEnrichmentClient
from .analysis import analyze_user, summarize_users
from .repository import FileUserRepository

logger = get_logger(__name__)

router = APIRouter()


def get_repository(request: Request) -> FileUserRepository:
    return request.app.state.repository


def get_ai_client(request: Request) -> EnrichmentClient:
    return request.app.state.ai_client


def _unavailable() -> Response:
    return Response(status_code=503)


# -- health ------------------------------------------------------------------


@router.get("/health")
async def health(
    ctx: RequestContext = Depends(get_request_context),
    ai: EnrichmentClient = Depends(get_ai_client),
):
    """Ok when the AI service answers a cheap tags call."""
    try:
        await ai.get_tags("health-check", ctx.correlation_id)
    except Exception as exc:
        logger.warning("AI service unreachable: %s", exc, extra=ctx.log_extra)
        return _unavailable()
    return {"status": "ok", "ai": "reachable"}


@router.get("/health/live")
async def live():
    return {"status": "live"}


@router.get("/health/ready")
async def ready(
    ctx: RequestContext = Depends(get_request_context),
    repo: FileUserRepository = Depends(get_repository),
    ai: EnrichmentClient = Depends(get_ai_client),
):
    """Ready when the record store can be read and the AI service answers."""
    try:
        await repo.get_all()
        await ai.get_tags("ready-check", ctx.correlation_id)
    except Exception as exc:
        logger.warning("Readiness check failed: %s", exc, extra=ctx.log_extra)
        return _unavailable()
    return {"status": "ready"}


# -- users -------------------------------------------------------------------


@router.get("/api/users", response_model=list[User])
async def list_users(repo: FileUserRepository = Depends(get_repository)):
    return await repo.get_all()


# Registered before /api/users/{user_id} so "insights" is not parsed as an id
@router.get("/api/users/insights", response_model=UsersInsights)
async def users_insights(repo: FileUserRepository = Depends(get_repository)):
    return summarize_users(await repo.get_all())


@router.get("/api/users/{user_id}", response_model=User)
async def get_user(user_id: UUID, repo: FileUserRepository = Depends(get_repository)):
    user = await repo.get_by_id(user_id)
    if user is None:
        raise RecordNotFoundError("User not found.", record_id=user_id)
    return user


@router.post("/api/users", response_model=User, status_code=201)
async def create_user(body: UserInput, response: Response, repo: FileUserRepository = Depends(get_repository)):
    # id, createdAt and analysis fields are server-assigned
    user = User(**body.model_dump())
    await repo.add(user)
    response.headers["Location"] = f"/api/users/{user.id}"
    return user


@router.put("/api/users/{user_id}", response_model=User)
async def update_user(user_id: UUID, body: UserInput, repo: FileUserRepository = Depends(get_repository)):
    existing = await repo.get_by_id(user_id)
    if existing is None:
        raise RecordNotFoundError("User not found.", record_id=user_id)

    updated = existing.model_copy(
        update={
            "first_name": body.first_name,
            "last_name": body.last_name,
            "email": body.email,
            "notes": body.notes,
        }
    )
    await repo.update(updated)
    return updated


@router.delete("/api/users/{user_id}", status_code=204)
async def delete_user(user_id: UUID, repo: FileUserRepository = Depends(get_repository)):
    await repo.delete(user_id)
    return Response(status_code=204)


@router.post("/api/users/{user_id}/analyze", response_model=AnalysisOutcome)
async def analyze(
    user_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    repo: FileUserRepository = Depends(get_repository),
    ai: EnrichmentClient = Depends(get_ai_client),
):
    return await analyze_user(repo, ai, user_id, ctx.correlation_id)


# -- error mapping -----------------------------------------------------------


async def _not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": exc.message})


async def _duplicate_handler(request: Request, exc: EnrichmentError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": exc.message})


async def _analysis_failed_handler(request: Request, exc: AnalysisFailedError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"title": exc.message, "status": 500},
        media_type="application/problem+json",
    )


def create_app(
    config: Optional[UserServiceConfig] = None,
    repository: Optional[FileUserRepository] = None,
    ai_client: Optional[EnrichmentClient] = None,
) -> FastAPI:
    """Build the user service.

    Args:
        config: Service configuration; read from the environment when omitted.
        repository: Record store override; a file store under
            ``config.data_dir`` when omitted.
        ai_client: Enrichment client override (tests use a fake).
    """
    config = config or UserServiceConfig.from_env()
    repository = repository or FileUserRepository(config.users_file)
    owned_client = ai_client is None
    if ai_client is None:
        ai_client = HttpEnrichmentClient(base_url=config.ai_base_url, timeout=config.ai_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await repository.initialize()
        logger.info("User service starting (ai=%s, data=%s)", config.ai_base_url, repository.file_path)
        yield
        if owned_client:
            await ai_client.aclose()

    app = FastAPI(
        title="usersense user service",
        description="User records with AI-derived sentiment, tags and engagement",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.repository = repository
    app.state.ai_client = ai_client

    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(RecordNotFoundError, _not_found_handler)
    app.add_exception_handler(DuplicateEmailError, _duplicate_handler)
    app.add_exception_handler(DuplicateRecordError, _duplicate_handler)
    app.add_exception_handler(AnalysisFailedError, _analysis_failed_handler)
    app.include_router(router)
    return app
