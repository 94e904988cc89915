"""
Result summarization.

Rows are handed to the oracle with missing values spelled out as
"not available" so the answer states them instead of skipping them.
Continuations bypass the oracle and render a Markdown table.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from entities.shared.errors import OracleError, SummarizationError
from entities.shared.history import format_history
from entities.shared.protocols import CompletionClient
from models import Turn

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "not available"

FULL_LIST_OFFER = "Would you like to see the full list?"


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def prepare_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Copy *rows* replacing null and blank values with ``NOT_AVAILABLE``."""
    return [
        {key: NOT_AVAILABLE if _is_missing(value) else value for key, value in row.items()}
        for row in rows
    ]


def _cell(value: Any) -> str:
    if _is_missing(value):
        return NOT_AVAILABLE
    return str(value).replace("|", "\\|").replace("\n", " ")


def render_table(rows: list[dict[str, Any]], columns: list[str], max_rows: int) -> str:
    """Render rows as a Markdown table.

    Args:
        rows: Result rows in order.
        columns: Column order for the header.
        max_rows: Rows beyond this are dropped with a note.

    Returns:
        The table text.
    """
    if not rows:
        return ""
    columns = columns or list(rows[0].keys())

    lines = [f"Here is the full list ({len(rows)} rows):\n"]
    lines.append("| " + " | ".join(columns) + " |")
    lines.append("| " + " | ".join(["---"] * len(columns)) + " |")
    for row in rows[:max_rows]:
        lines.append("| " + " | ".join(_cell(row.get(col)) for col in columns) + " |")

    if len(rows) > max_rows:
        lines.append(f"\n*Showing {max_rows} of {len(rows)} rows.*")

    return "\n".join(lines)


def build_summary_prompt(
    question: str,
    rows: list[dict[str, Any]],
    history_text: str,
    offer_full_list: bool,
) -> str:
    offer = (
        f'\n5. The results are long. Summarize the key findings and end with exactly: "{FULL_LIST_OFFER}"'
        if offer_full_list
        else ""
    )
    return f"""You are Mia, a helpful flight assistant for Miami International Airport. Provide a clear and direct answer to the user's question based on the database results and conversation history.

**Conversation History:**
{history_text}

**User's Latest Question:** "{question}"

**Database Results (JSON):**
```json
{json.dumps(rows, indent=2, default=str)}
```

**Rules:**
1. Be conversational. Do not dump the raw data or mention SQL, JSON or databases.
2. Combine several fields into natural sentences, e.g. "Flight BA2490 departed at 10:05 from gate D12."
3. If a field the user asked about is "{NOT_AVAILABLE}", say that it is not available. Never leave it out silently.
4. For counts or aggregates, state the number plainly.{offer}

**Your Answer:**"""


class ResultSummarizer:
    """Turns result rows into a conversational answer.

    Args:
        completion: Oracle client.
        history_max_turns: Only the most recent turns are rendered into the prompt.
    """

    def __init__(self, completion: CompletionClient, history_max_turns: int | None = None) -> None:
        self._completion = completion
        self._history_max_turns = history_max_turns

    async def summarize(
        self,
        question: str,
        rows: list[dict[str, Any]],
        history: list[Turn],
        offer_full_list: bool = False,
    ) -> str:
        """Summarize *rows* as an answer to *question*.

        Args:
            question: The user's message.
            rows: Non-empty result rows.
            history: Prior turns, oldest first.
            offer_full_list: End the answer with an offer to show every row.

        Returns:
            The answer text.

        Raises:
            ValueError: If *rows* is empty; empty results are not summarized.
            SummarizationError: If the oracle fails or returns nothing.
        """
        if not rows:
            raise ValueError("Empty results are not summarized")

        prompt = build_summary_prompt(
            question,
            prepare_rows(rows),
            format_history(history, self._history_max_turns),
            offer_full_list,
        )
        try:
            summary = (await self._completion.complete(prompt)).strip()
        except OracleError as exc:
            raise SummarizationError(str(exc)) from exc

        if not summary:
            raise SummarizationError("Summary was empty")

        if offer_full_list and "full list" not in summary.lower():
            summary = f"{summary}\n\n{FULL_LIST_OFFER}"

        logger.info("Summary (%d rows): %s", len(rows), summary[:100])
        return summary
