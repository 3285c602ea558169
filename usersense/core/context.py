"""Per-request context threaded explicitly through the enrichment call chain."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

CORRELATION_HEADER = "X-Correlation-ID"


def new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class RequestContext:
    """Immutable context passed to each enrichment operation.

    Attributes:
        correlation_id: Opaque tracing tag received on (or generated for) the
            incoming request and echoed in the response envelope.
    """

    correlation_id: str

    @classmethod
    def create(cls, correlation_id: str | None = None) -> "RequestContext":
        """Use ``correlation_id`` when it is non-blank, otherwise generate one."""
        if correlation_id is None or not correlation_id.strip():
            correlation_id = new_correlation_id()
        return cls(correlation_id=correlation_id)

    @property
    def log_extra(self) -> dict[str, str]:
        """``extra=`` mapping for logger calls made on behalf of this request."""
        return {"correlation_id": self.correlation_id}
