"""JSON extraction from free-text model responses.

Gemini answers are not guaranteed to be pure JSON: they arrive wrapped in
markdown fences, with commentary before or after, and occasionally with raw
control bytes inside string values. ``extract_structured_data`` takes the
outermost ``{...}`` / ``[...]`` span and parses it.
"""

from __future__ import annotations

import json
import re
from typing import Any

from errors import ParseError

# C0 (U+0000-U+001F) and C1 (U+007F-U+009F) control characters
_CONTROL_CHARS = re.compile("[\u0000-\u001f\u007f-\u009f]")

MALFORMED_MESSAGE = "AI returned malformed data, please try again."


def find_json_span(text: str) -> tuple[int, int]:
    """Return ``(start, end)`` (inclusive) of the outermost JSON span, or ``(-1, -1)``."""
    first_brace = text.find("{")
    first_bracket = text.find("[")

    if first_brace != -1 and (first_bracket == -1 or first_brace < first_bracket):
        start = first_brace
    elif first_bracket != -1:
        start = first_bracket
    else:
        return -1, -1

    end = max(text.rfind("}"), text.rfind("]"))
    if end < start:
        return -1, -1
    return start, end


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS.sub("", text)


def extract_structured_data(raw_text: str) -> Any:
    """Parse the outermost JSON object or array out of ``raw_text``.

    Raises ``ParseError`` (with the raw text attached) when no span is found or
    the span is not valid JSON after control characters are removed.
    """
    text = (raw_text or "").strip()
    start, end = find_json_span(text)
    if start == -1:
        raise ParseError("No JSON structure found in response", raw_text=raw_text or "")

    candidate = strip_control_chars(text[start:end + 1])
    try:
        return json.loads(candidate)
    except ValueError as e:
        raise ParseError(MALFORMED_MESSAGE, raw_text=raw_text) from e
