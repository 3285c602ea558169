"""
Custom exceptions for usersense.

Provides specific exception types for the failure modes that can reach a
caller.  Backend failures inside the enrichment core never surface here: they
are absorbed by the provider adapters and reported as fallback results.
"""

from __future__ import annotations

from typing import Any


class EnrichmentError(Exception):
    """Base exception for all usersense errors.

    Attributes:
        message: Human-readable error description.
        field: Input field involved (``None`` if not field-specific).
        record_id: Record that triggered the error (``None`` for non-record errors).
    """

    def __init__(self, message: str, field: str | None = None, record_id: Any = None):
        self.message = message
        self.field = field
        self.record_id = record_id

        # Build descriptive error message
        error_parts = [message]
        if field is not None:
            error_parts.append(f"Field: {field}")
        if record_id is not None:
            error_parts.append(f"Record: {record_id}")

        super().__init__(" | ".join(error_parts))


class InputValidationError(EnrichmentError):
    """Raised when required input is missing (e.g. empty text for sentiment/tags).

    Surfaced to HTTP callers as a 400; never retried.
    """

    pass


class ConfigurationError(EnrichmentError):
    """Raised when configuration is invalid."""

    pass


class RecordNotFoundError(EnrichmentError):
    """Raised by the record store when no user has the requested identifier."""

    pass


class DuplicateEmailError(EnrichmentError):
    """Raised by the record store when another user already owns the email address."""

    pass


class DuplicateRecordError(EnrichmentError):
    """Raised by the record store when a record with the same identifier already exists."""

    pass


class EnrichmentClientError(EnrichmentError):
    """Raised by the consumer-side client when an enrichment call does not succeed.

    Attributes:
        status_code: HTTP status returned by the AI service (``None`` for
            transport failures).
    """

    def __init__(self, message: str, status_code: int | None = None, **kwargs: Any):
        self.status_code = status_code
        super().__init__(message, **kwargs)


class AnalysisFailedError(EnrichmentError):
    """Raised when the analyze workflow's enrichment calls throw.

    Distinct from a fallback result, which is a successful, well-formed
    response.  The target record is left unmodified.
    """

    pass
