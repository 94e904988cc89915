"""Interpret-or-fail parsing of raw oracle text.

Each helper either returns the expected shape or ``None``; callers decide
what a failure means for their step.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_PATTERN = re.compile(r"```[a-zA-Z]*\s*\n?(.*?)```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the body of the first Markdown code fence, or *text* trimmed."""
    text = text.strip()
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    # Unterminated fence, e.g. "```sql\nSELECT ..."
    if text.startswith("```"):
        first_newline = text.find("\n")
        return text[first_newline + 1 :].strip() if first_newline >= 0 else ""
    return text


def parse_json_object(response_text: str) -> dict[str, Any] | None:
    """Parse a JSON object from the oracle's reply.

    Attempts direct JSON parsing, then markdown code-fence extraction,
    and finally a search for the outermost ``{...}`` span.

    Args:
        response_text: The raw text response from the oracle.

    Returns:
        The parsed dictionary, or ``None`` if no object could be parsed.
    """
    text = response_text.strip()
    if not text:
        return None

    for candidate in (text, strip_code_fences(text)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        try:
            parsed = json.loads(text[start:end])
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, dict):
            return parsed

    return None


def parse_json_array(response_text: str) -> list[Any] | None:
    """Parse a JSON array from the oracle's reply, or return ``None``."""
    text = strip_code_fences(response_text)
    if not text:
        return None

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("[")
        end = text.rfind("]") + 1
        if start < 0 or end <= start:
            return None
        try:
            parsed = json.loads(text[start:end])
        except json.JSONDecodeError:
            return None

    return parsed if isinstance(parsed, list) else None


def extract_select_statement(response_text: str) -> str | None:
    """Return the SELECT statement in the reply, or ``None``.

    Strips code fences and a trailing semicolon. Anything that does not
    start with SELECT (case-insensitive) is rejected.
    """
    text = strip_code_fences(response_text)
    if text.lower().startswith("sql\n"):
        text = text[4:].strip()
    text = text.rstrip().rstrip(";").strip()
    if not text.upper().startswith("SELECT"):
        return None
    return text
