"""
Core functionality for usersense: configuration, errors, request context and
JSON extraction.  The orchestrator lives in :mod:`usersense.core.orchestrator`
and is imported from there to keep the provider package free of import cycles.
"""

from .config import ProviderConfig, UserServiceConfig
from .context import CORRELATION_HEADER, RequestContext
from .exceptions import (
    AnalysisFailedError,
    ConfigurationError,
    DuplicateEmailError,
    DuplicateRecordError,
    EnrichmentClientError,
    EnrichmentError,
    InputValidationError,
    RecordNotFoundError,
)
from .extractor import ExtractionResult, extract_json

__all__ = [
    'ProviderConfig',
    'UserServiceConfig',
    'RequestContext',
    'CORRELATION_HEADER',
    'EnrichmentError',
    'InputValidationError',
    'ConfigurationError',
    'RecordNotFoundError',
    'DuplicateEmailError',
    'DuplicateRecordError',
    'EnrichmentClientError',
    'AnalysisFailedError',
    'ExtractionResult',
    'extract_json',
]
