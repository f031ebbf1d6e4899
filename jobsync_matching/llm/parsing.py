"""Helpers for reading model output.

Completion payloads are untrusted: models wrap JSON in Markdown fences, return
prose, or drop fields. Operations extract the message content here and then
validate it against their own pydantic schema.
"""

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def message_content(response: dict[str, Any]) -> str:
    """Return the first choice's message content from an OpenRouter-style response.

    Raises:
        ValueError: If the payload has no usable content
    """
    choices = response.get("choices") or []
    if not choices:
        raise ValueError("Completion response has no choices")
    content = (choices[0].get("message") or {}).get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValueError("Completion response has empty content")
    return content


def parse_json_content(content: str) -> Any:
    """Parse JSON from model content, tolerating ```json fences."""
    cleaned = _FENCE_RE.sub("", content.strip()).strip()
    return json.loads(cleaned)
