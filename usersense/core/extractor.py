"""Best-effort extraction of a JSON object from free-form model output.

Models asked for "JSON only" still wrap their answer in prose or markdown
fences.  :func:`extract_json` takes the outermost ``{ ... }`` span and parses
it, returning the caller's fallback shape when that fails.

Known limitation: the span runs from the *first* ``{`` to the *last* ``}`` in
the text, so braces in the surrounding prose (``"use {name} here: {...}"``)
produce an unparseable span and the fallback is returned.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import Any, Mapping

from ..utils.logger import get_logger

logger = get_logger(__name__)

MALFORMED_OUTPUT_ERROR = "model output was not valid JSON"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of :func:`extract_json`.

    Attributes:
        data: The parsed object, or a copy of the fallback shape.
        used_fallback: True when ``data`` is the fallback.
        error: Why the fallback was used (``None`` on success).
    """

    data: dict[str, Any]
    used_fallback: bool = False
    error: str | None = None


def _fallback(fallback: Mapping[str, Any], reason: str) -> ExtractionResult:
    return ExtractionResult(data=copy.deepcopy(dict(fallback)), used_fallback=True, error=reason)


def extract_json(raw_text: str | None, fallback: Mapping[str, Any]) -> ExtractionResult:
    """Locate and parse a JSON object in ``raw_text``.

    Args:
        raw_text: Raw model output.  ``None``, empty and whitespace-only input
            fall back immediately.
        fallback: Shape returned (copied) when no object can be parsed.

    Returns:
        The parsed object verbatim (no schema validation) with
        ``used_fallback=False``, or the fallback with ``used_fallback=True``.
    """
    trimmed = (raw_text or "").strip()
    if not trimmed:
        return _fallback(fallback, MALFORMED_OUTPUT_ERROR)

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    candidate = trimmed[start:end + 1] if 0 <= start < end else trimmed

    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        logger.debug("Model output is not valid JSON, using fallback: %.200s", trimmed)
        return _fallback(fallback, MALFORMED_OUTPUT_ERROR)

    if not isinstance(parsed, dict):
        logger.debug("Model output parsed to %s, not an object; using fallback", type(parsed).__name__)
        return _fallback(fallback, MALFORMED_OUTPUT_ERROR)

    return ExtractionResult(data=parsed)
