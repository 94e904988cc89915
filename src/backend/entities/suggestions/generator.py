"""Follow-up question suggestions.

Suggestions are decoration: any failure yields an empty list.
"""

import json
import logging
from typing import Any

from entities.shared.errors import OracleError
from entities.shared.history import format_history
from entities.shared.parsing import parse_json_array
from entities.shared.protocols import CompletionClient
from models import SchemaDescriptor, Turn

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 4


def parse_suggestions(raw: str | None) -> list[str]:
    """Parse the oracle's JSON array into at most four distinct questions."""
    parsed = parse_json_array(raw or "")
    if parsed is None:
        logger.warning("Failed to parse suggestions JSON: %s", (raw or "")[:100])
        return []

    suggestions: list[str] = []
    seen: set[str] = set()
    for item in parsed:
        if not isinstance(item, str) or not item.strip():
            continue
        text = item.strip()
        if text.lower() in seen:
            continue
        seen.add(text.lower())
        suggestions.append(text)
    return suggestions[:MAX_SUGGESTIONS]


def build_suggestion_prompt(
    question: str,
    answer: str,
    rows: list[dict[str, Any]],
    schema: SchemaDescriptor,
    history_text: str,
) -> str:
    return f"""You generate relevant follow-up questions for a user asking about flight information. Your suggestions MUST be answerable using ONLY the provided database schema.

**Database Schema for '{schema.table_name}' table:**
{schema.to_prompt_text()}

**Conversation Context:**
* **History:** {history_text}
* **User's Latest Question:** "{question}"
* **Your Last Answer:** "{answer}"
* **Data Used for Answer:** {json.dumps(rows[:5], default=str)}

**CRITICAL INSTRUCTIONS:**
1. **Schema-Bound:** Only ask about columns in the schema above.
2. **Contextual:** Continue the conversation naturally and ask about details NOT already given in "Your Last Answer".
3. **Format:** Return a JSON array of 3-4 short questions, e.g. ["What's the arrival time?", "Which gate is it at?"]
4. **No Markdown.**

**Follow-up Suggestions (JSON Array):**"""


class SuggestionGenerator:
    """Proposes up to four follow-up questions for an answered turn."""

    def __init__(self, completion: CompletionClient, history_max_turns: int | None = None) -> None:
        self._completion = completion
        self._history_max_turns = history_max_turns

    async def suggest(
        self,
        question: str,
        answer: str,
        rows: list[dict[str, Any]],
        schema: SchemaDescriptor,
        history: list[Turn],
    ) -> list[str]:
        prompt = build_suggestion_prompt(
            question, answer, rows, schema, format_history(history, self._history_max_turns)
        )
        try:
            raw = await self._completion.complete(prompt)
        except OracleError as exc:
            logger.warning("Suggestion generation failed: %s", exc)
            return []
        return parse_suggestions(raw)
