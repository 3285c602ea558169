"""User-records service and the consumer side of the enrichment protocol."""

from .ai_client import EnrichmentClient, HttpEnrichmentClient
from .analysis import analyze_user, summarize_users
from .app import create_app
from .repository import FileUserRepository, UserRepository

__all__ = [
    "EnrichmentClient",
    "HttpEnrichmentClient",
    "FileUserRepository",
    "UserRepository",
    "analyze_user",
    "summarize_users",
    "create_app",
]
