"""
Parsing of JSON objects out of free-text LLM replies.

Models are asked to "return ONLY a JSON object" but regularly wrap it in a
markdown code fence. Strict parsing is tried first, then the fence markers are
stripped and parsing is retried. Anything still unparseable is raised so the
caller can choose its fallback.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE_ANY = re.compile(r"```\s*")


class ResponseParseError(ValueError):
    """Raised when a reply cannot be normalized into a JSON object."""

    def __init__(self, message: str, content: str):
        super().__init__(message)
        self.content = content


def strip_code_fences(content: str) -> str:
    content = _FENCE_OPEN.sub("", content)
    content = _FENCE_ANY.sub("", content)
    return content.strip()


def parse_json_response(content: str) -> dict[str, Any]:
    """
    Parse a model reply into a dict.

    Args:
        content: Raw response text

    Returns:
        The parsed JSON object

    Raises:
        ResponseParseError: if neither the raw text nor the fence-stripped
            text is a JSON object
    """
    if content is None:
        raise ResponseParseError("Empty response", "")

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        cleaned = strip_code_fences(content)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON: {e}")
            logger.error(f"Content: {content[:200]}...")
            raise ResponseParseError(f"Invalid JSON response: {e}", content) from e

    if not isinstance(data, dict):
        raise ResponseParseError(
            f"Expected a JSON object, got {type(data).__name__}", content
        )
    return data


def as_string_list(value: Any) -> list[str]:
    """
    Coerce a reply field that should be a list of strings.

    A bare string becomes a one-item list; None or an empty value becomes [].
    """
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]
