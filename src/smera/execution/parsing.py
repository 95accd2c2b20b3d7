"""Lenient JSON extraction from LLM responses.

Models often wrap JSON in markdown fences or surround it with prose.
``parse_ai_response`` strips fences, takes the outermost ``{...}`` block
and falls back to a caller-supplied value when nothing parses.
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar

from smera.core.constants import TRUNCATE_ERROR_MESSAGE_CHARS
from smera.core.logging import get_logger

_logger = get_logger("ai_parse")

T = TypeVar("T")

_FENCE_OPEN = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\n?")
_OBJECT_BLOCK = re.compile(r"\{[\s\S]*\}")


def parse_ai_response(text: str, fallback: T) -> dict[str, Any] | T:
    """Parse the JSON object in ``text``, or return ``fallback``.

    Args:
        text: Raw model output.
        fallback: Value returned when no JSON object can be parsed.

    Returns:
        The parsed object, or ``fallback``.
    """
    cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text)).strip()
    match = _OBJECT_BLOCK.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        _logger.warning(
            "ai_response_parse_failed",
            error=str(e),
            raw_text=text[:TRUNCATE_ERROR_MESSAGE_CHARS],
        )
        return fallback

    if not isinstance(parsed, dict):
        _logger.warning("ai_response_not_object", parsed_type=type(parsed).__name__)
        return fallback
    return parsed
