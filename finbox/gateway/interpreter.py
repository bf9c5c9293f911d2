"""
Response interpreter: turns provider payloads into plain text.

Each provider declares the one response shape it speaks; the decoder for
that shape is looked up here. No runtime guessing between shapes:

    HF_GENERATED_TEXT   [{"generated_text": "..."}]  or  {"generated_text": "..."}
    GEMINI_CANDIDATES   {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

Anything else raises ResponseFormatError, which the gateway surfaces as a
permanent (not retried) failure.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable

from finbox.gateway.base import GatewayResult

logger = logging.getLogger(__name__)

UNEXPECTED_FORMAT = "Unexpected API response format"


class ResponseFormatError(ValueError):
    """Provider returned a structurally wrong payload."""

    def __init__(self, message: str = UNEXPECTED_FORMAT):
        super().__init__(message)


class ResponseShape(enum.Enum):
    HF_GENERATED_TEXT = "hf_generated_text"
    GEMINI_CANDIDATES = "gemini_candidates"


def _text_or_raise(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ResponseFormatError()
    return value.strip()


def _decode_generated_text(data: Any) -> str:
    if isinstance(data, list):
        if not data or not isinstance(data[0], dict):
            raise ResponseFormatError()
        return _text_or_raise(data[0].get("generated_text"))
    if isinstance(data, dict):
        return _text_or_raise(data.get("generated_text"))
    raise ResponseFormatError()


def _decode_candidates(data: Any) -> str:
    try:
        return _text_or_raise(data["candidates"][0]["content"]["parts"][0]["text"])
    except (KeyError, IndexError, TypeError):
        raise ResponseFormatError() from None


DECODERS: dict[ResponseShape, Callable[[Any], str]] = {
    ResponseShape.HF_GENERATED_TEXT: _decode_generated_text,
    ResponseShape.GEMINI_CANDIDATES: _decode_candidates,
}


def decode_response(shape: ResponseShape, data: Any) -> str:
    """Decode a provider payload of the given shape into stripped text."""
    return DECODERS[shape](data)


def interpret_internal_content(result: GatewayResult) -> GatewayResult:
    """
    Reduce a yes/no-plus-explanation answer to an internal-content finding.

    Success data becomes the full explanation when the answer contains
    "yes" (case-insensitive), otherwise False. Failures pass through.
    This is a substring heuristic: "No, yes I mean no" is flagged.
    """
    if not result.success:
        return result
    text = str(result.data)
    if "yes" in text.lower():
        return GatewayResult(success=True, data=text)
    return GatewayResult(success=True, data=False)
