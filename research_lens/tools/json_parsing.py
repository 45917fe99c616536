"""Decoding for web-search replies.

With the server-side search tool bound, Claude answers in prose and cannot
also be forced into a structured-output schema, so the paper list it returns
is decoded from text here: fences are stripped, the outermost array is
located, and the outcome comes back as a tagged ``DecodeResult`` so callers
decide what a failure means without catching ``json.JSONDecodeError``.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?")


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding model text.
    
    Attributes:
        ok: Whether decoding succeeded
        value: Decoded value (only meaningful when ok)
        error: Failure description (only when not ok)
        raw: The text that was decoded
    """
    
    ok: bool
    value: Any = None
    error: str | None = None
    raw: str = ""
    
    @classmethod
    def success(cls, value: Any, raw: str = "") -> "DecodeResult":
        return cls(ok=True, value=value, raw=raw)
    
    @classmethod
    def failure(cls, error: str, raw: str = "") -> "DecodeResult":
        return cls(ok=False, error=error, raw=raw)


def strip_code_fences(text: str) -> str:
    """Remove every ```json / ``` fence marker from text."""
    if not isinstance(text, str):
        return ""
    return _FENCE_PATTERN.sub("", text).replace("```", "").strip()


def _span(text: str, opener: str, closer: str) -> str | None:
    """Return the outermost opener..closer substring, if any."""
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def decode_json_array(text: str | None) -> DecodeResult:
    """Decode a JSON array from model output.
    
    Fences are stripped; if the remainder is not already a bare array the
    outermost ``[...]`` span is used. Output with no array at all, or a
    non-array JSON value, decodes to ``[]``. Malformed JSON is a failure.
    
    Args:
        text: Raw model output
        
    Returns:
        DecodeResult holding a list on success
    """
    raw = text or ""
    cleaned = strip_code_fences(raw) or "[]"
    
    if not cleaned.startswith("["):
        span = _span(cleaned, "[", "]")
        if span is None:
            return DecodeResult.success([], raw)
        cleaned = span
    
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return DecodeResult.failure(f"invalid JSON: {e}", raw)
    
    if not isinstance(value, list):
        return DecodeResult.success([], raw)
    return DecodeResult.success(value, raw)
