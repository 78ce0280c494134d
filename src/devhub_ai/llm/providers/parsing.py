"""Response parsing helpers shared by the backends."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json(text: str) -> Any:
    """Parse a JSON document out of model output.

    Accepts bare JSON, JSON inside a ```json fence, or JSON surrounded by
    chatter (first '{' to last '}').

    Raises:
        ValueError: If no JSON document can be parsed
    """
    candidates = [text.strip()]

    fence = _FENCE_RE.search(text)
    if fence:
        candidates.append(fence.group(1).strip())

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    raise ValueError("response does not contain a JSON document")


def schema_instructions(json_schema: dict) -> str:
    """Prompt suffix asking for JSON that follows json_schema."""
    return (
        "\n\nRespond ONLY with a JSON object that conforms to this JSON Schema. "
        "Do not wrap it in markdown or add commentary.\n"
        f"{json.dumps(json_schema, ensure_ascii=False)}"
    )


def parse_retry_after(value: Optional[str]) -> float:
    """Parse a Retry-After header in seconds (0 if absent or a date)."""
    if not value:
        return 0
    try:
        return max(float(value), 0)
    except ValueError:
        return 0


__all__ = ["extract_json", "schema_instructions", "parse_retry_after"]
