"""Tolerant decoding of JSON objects from free-text model output."""

import json
import re
from typing import Any, Dict, Optional

from ..errors import ResponseParseError

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def decode_json_object(text: str) -> Dict[str, Any]:
    """Decode the JSON object a model was asked to respond with.

    Models often wrap the object in a markdown fence or surround it with
    prose, so decoding falls back through:

    1. the stripped response parsed as-is;
    2. the body of the first fenced code block;
    3. the span from the first ``{`` to the last ``}``.

    Args:
        text: Raw model response

    Returns:
        Decoded JSON object

    Raises:
        ResponseParseError: If no step yields a JSON object
    """
    if text is None:
        raise ResponseParseError("Empty model response")

    candidate = text.strip()
    if not candidate:
        raise ResponseParseError("Empty model response")

    result = _loads_object(candidate)
    if result is not None:
        return result

    match = _FENCE_PATTERN.search(candidate)
    if match:
        candidate = match.group(1).strip()
        result = _loads_object(candidate)
        if result is not None:
            return result

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start < 0 or end <= start:
        raise ResponseParseError("No JSON object found in response")

    result = _loads_object(candidate[start:end + 1])
    if result is None:
        raise ResponseParseError("Invalid JSON object in response")
    return result
