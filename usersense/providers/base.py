"""GenerationProvider protocol and GenerationResult — provider-agnostic generation interface."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, runtime_checkable

from ..core.extractor import ExtractionResult, extract_json

JSON_ONLY_INSTRUCTION = "Return ONLY valid JSON. No markdown. No backticks."

# Values reported by GenerationProvider.probe()
DEPENDENCY_REACHABLE = "reachable"
DEPENDENCY_UNREACHABLE = "unreachable"
DEPENDENCY_CONFIGURED = "configured"
DEPENDENCY_MISSING_KEY = "missing_key"
DEPENDENCY_NOT_APPLICABLE = "n/a"


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a generation request.

    Attributes:
        data: Parsed JSON object, or the caller's fallback shape.
        fallback: True when ``data`` is (a copy of) the fallback shape.
        error: Failure description when the fallback was caused by an actual
            failure; ``None`` on success and for deliberate mock responses.
    """

    data: dict[str, Any] = field(default_factory=dict)
    fallback: bool = False
    error: str | None = None

    @classmethod
    def from_fallback(cls, fallback: Mapping[str, Any], error: str | None = None) -> "GenerationResult":
        return cls(data=copy.deepcopy(dict(fallback)), fallback=True, error=error)

    @classmethod
    def from_extraction(cls, extraction: ExtractionResult) -> "GenerationResult":
        return cls(data=extraction.data, fallback=extraction.used_fallback, error=extraction.error)


class LLMAPIError(Exception):
    """Provider-agnostic API error used inside the adapters.

    Wraps transport and SDK errors so the retry decision doesn't need to know
    about specific SDKs.  Never escapes :meth:`GenerationProvider.generate`.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        is_rate_limit: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.is_rate_limit = is_rate_limit


def build_prompt(prompt: str) -> str:
    """Prefix the JSON-only instruction every backend receives."""
    return f"{JSON_ONLY_INSTRUCTION}\n{prompt}"


def parse_output(text: str | None, fallback: Mapping[str, Any]) -> GenerationResult:
    """Run successful backend text through the response extractor."""
    return GenerationResult.from_extraction(extract_json(text, fallback))


@runtime_checkable
class GenerationProvider(Protocol):
    """Protocol all provider adapters must satisfy.

    ``generate`` never raises for backend failures: transport errors, bad
    status codes and malformed output all come back as a fallback result.
    Task cancellation is not a backend failure and propagates unchanged.
    """

    name: str

    async def generate(self, prompt: str, fallback: Mapping[str, Any]) -> GenerationResult: ...

    async def probe(self) -> str: ...

    async def aclose(self) -> None: ...
