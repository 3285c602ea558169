"""
Configuration for the usersense services.

Both services read their settings once at process start into frozen
dataclasses which are then handed to the components that need them.  Nothing
reads the environment at request time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from ..utils.logger import get_logger
from .exceptions import ConfigurationError

logger = get_logger(__name__)

PROVIDER_OLLAMA = "ollama"
PROVIDER_GEMINI = "gemini"
PROVIDER_MOCK = "mock"

# Selector values accepted in AI_PROVIDER -> canonical provider name
PROVIDER_ALIASES = {
    "ollama": PROVIDER_OLLAMA,
    "local": PROVIDER_OLLAMA,
    "gemini": PROVIDER_GEMINI,
    "hosted": PROVIDER_GEMINI,
    "mock": PROVIDER_MOCK,
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}", field=key)


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}", field=key)


def normalize_provider(name: Optional[str]) -> str:
    """Map an ``AI_PROVIDER`` value to a canonical provider name.

    Unrecognized names fall back to the local Ollama provider.
    """
    key = (name or PROVIDER_OLLAMA).strip().lower()
    canonical = PROVIDER_ALIASES.get(key)
    if canonical is None:
        logger.warning("Unknown AI provider %r, defaulting to %s", name, PROVIDER_OLLAMA)
        return PROVIDER_OLLAMA
    return canonical


@dataclass(frozen=True)
class ProviderConfig:
    """
    Process-wide configuration of the AI service.

    Immutable for the lifetime of the process; passed to the provider
    factory and the orchestrator at construction.
    """

    # === Provider selection ===
    provider: str = PROVIDER_OLLAMA
    """Canonical provider name: ollama | gemini | mock"""

    mock: bool = False
    """Force mock responses regardless of the selected provider"""

    # === Local model server (Ollama) ===
    ollama_url: str = "http://localhost:11434"
    """Base URL of the Ollama server"""

    ollama_model: str = "llama3"
    """Model used for /api/generate"""

    # === Hosted API (Gemini) ===
    gemini_api_key: str = ""
    """API key for Google AI Studio; empty disables the hosted provider"""

    gemini_model: str = "gemini-2.0-flash-lite"
    """Hosted model identifier"""

    # === Reliability ===
    request_timeout: float = 120.0
    """Transport timeout for a single generation call, in seconds"""

    rate_limit_backoff: float = 2.0
    """Delay before the single retry after a rate-limit response, in seconds"""

    # === Process ===
    port: int = 3001
    """Listening port of the AI service"""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"""

    def __post_init__(self):
        """Normalize the provider name and validate numeric values."""
        object.__setattr__(self, "provider", normalize_provider(self.provider))

        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout}")

        if self.rate_limit_backoff < 0:
            raise ConfigurationError(
                f"rate_limit_backoff must be non-negative, got {self.rate_limit_backoff}"
            )

        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"port must be between 1 and 65535, got {self.port}")

    @property
    def mock_enabled(self) -> bool:
        """True when every generation request should be answered by the mock provider."""
        return self.mock or self.provider == PROVIDER_MOCK

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str | Path] = None,
    ) -> "ProviderConfig":
        """Build the configuration from environment variables.

        When ``environ`` is omitted the process environment is used, after
        loading ``env_file`` (or a ``.env`` in the working directory).
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        return cls(
            provider=environ.get("AI_PROVIDER", PROVIDER_OLLAMA),
            mock=_env_flag(environ.get("MOCK_AI")),
            ollama_url=environ.get("OLLAMA_URL") or cls.ollama_url,
            ollama_model=environ.get("OLLAMA_MODEL") or cls.ollama_model,
            gemini_api_key=environ.get("GEMINI_API_KEY", ""),
            gemini_model=environ.get("GEMINI_MODEL") or cls.gemini_model,
            request_timeout=_env_float(environ, "AI_REQUEST_TIMEOUT", cls.request_timeout),
            port=_env_int(environ, "PORT", cls.port),
            log_level=environ.get("LOG_LEVEL") or cls.log_level,
        )


@dataclass(frozen=True)
class UserServiceConfig:
    """Configuration of the user-records service."""

    ai_base_url: str = "http://localhost:3001"
    """Base URL of the AI service"""

    ai_timeout: float = 120.0
    """Timeout for calls to the AI service, in seconds"""

    data_dir: str = "Data"
    """Directory holding users.json"""

    port: int = 8000
    """Listening port of the user service"""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"""

    def __post_init__(self):
        if self.ai_timeout <= 0:
            raise ConfigurationError(f"ai_timeout must be positive, got {self.ai_timeout}")

        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"port must be between 1 and 65535, got {self.port}")

    @property
    def users_file(self) -> Path:
        return Path(self.data_dir) / "users.json"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str | Path] = None,
    ) -> "UserServiceConfig":
        """Build the configuration from environment variables (see :meth:`ProviderConfig.from_env`)."""
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        return cls(
            ai_base_url=environ.get("AI_SERVICE_BASE_URL") or cls.ai_base_url,
            ai_timeout=_env_float(environ, "AI_CLIENT_TIMEOUT", cls.ai_timeout),
            data_dir=environ.get("USER_DATA_DIR") or cls.data_dir,
            port=_env_int(environ, "USER_SERVICE_PORT", cls.port),
            log_level=environ.get("LOG_LEVEL") or cls.log_level,
        )
