"""
FastAPI middleware for correlation identifiers and request logging
"""
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.context import CORRELATION_HEADER, RequestContext
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and echo it on the response.

    The id comes from the ``X-Correlation-ID`` request header, or is generated
    when the header is absent or blank.  It is stored on
    ``request.state.correlation_id`` for handlers to pass on explicitly.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        ctx = RequestContext.create(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = ctx.correlation_id

        start_time = time.time()
        response = await call_next(request)
        duration_ms = int((time.time() - start_time) * 1000)

        response.headers[CORRELATION_HEADER] = ctx.correlation_id
        logger.info(
            "%s %s -> %d (%d ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra=ctx.log_extra,
        )
        return response


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the current request's context."""
    correlation_id = getattr(request.state, "correlation_id", None)
    return RequestContext.create(correlation_id)
