"""HTTP plumbing shared by both services."""

from .middleware import CorrelationIdMiddleware, get_request_context

__all__ = ["CorrelationIdMiddleware", "get_request_context"]
