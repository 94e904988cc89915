"""
Intent classification for a single user turn.

The oracle is asked for one bare label. Its reply is normalized and
matched against the closed label set; anything unrecognized falls back
to general conversation so classification never fails a turn.
"""

import logging
import re

from entities.shared.errors import OracleError
from entities.shared.history import format_history
from entities.shared.protocols import CompletionClient
from models import Intent, Turn

logger = logging.getLogger(__name__)

FALLBACK_INTENT = Intent.GENERAL_CONVERSATION

# Longest first so a label that contains another is matched whole
_LABELS: list[Intent] = sorted(Intent, key=lambda i: len(i.value), reverse=True)

_STRIP_PATTERN = re.compile(r"[^A-Z0-9_\s]")


def parse_intent(raw: str | None) -> Intent:
    """Map raw oracle output onto an ``Intent``.

    Trims, upper-cases and strips punctuation other than ``_``, then
    looks for a known label anywhere in the text.

    Args:
        raw: The oracle's reply.

    Returns:
        The matched intent, or ``GENERAL_CONVERSATION``.
    """
    if not raw:
        return FALLBACK_INTENT

    normalized = _STRIP_PATTERN.sub("", raw.strip().upper())
    candidates = (normalized, re.sub(r"\s+", "_", normalized))

    for candidate in candidates:
        for label in _LABELS:
            if label.value in candidate:
                return label

    logger.warning("Unrecognized intent label: %s", raw[:100])
    return FALLBACK_INTENT


def build_classification_prompt(history_text: str, latest_message: str) -> str:
    return f"""You are a router agent for a flight information assistant. Classify the user's latest message.
Respond with exactly one of these labels and nothing else:

- SPECIFIC_LOOKUP: the user asks about one specific flight on one specific day (status, gate, times, delay, aircraft, terminal).
  This includes a reply that only supplies the date or option the assistant just asked for, e.g. "2024-07-12" after "Which date are you interested in?".
- ANALYTICAL_QUERY: the user asks for counting, aggregation, trends, averages, frequencies or comparisons across many records or days. This applies even when only one flight is mentioned, e.g. "Is flight BA2490 regularly late?".
- ANALYTICAL_CONTINUATION: the assistant's last message offered to show a fuller list or more results, and the user is simply accepting (e.g. "yes", "sure", "show me", "please do").
- GENERAL_CONVERSATION: greetings, thanks, small talk, or anything unrelated to flight data.

**Conversation History:**
{history_text}

**User's Latest Message:** "{latest_message}"

**Label:**"""


class IntentClassifier:
    """Labels each turn with one of the four intents.

    Args:
        completion: Oracle client.
        history_max_turns: Only the most recent turns are shown to the oracle.
    """

    def __init__(self, completion: CompletionClient, history_max_turns: int | None = None) -> None:
        self._completion = completion
        self._history_max_turns = history_max_turns

    async def classify(self, history: list[Turn], latest_message: str) -> Intent:
        """Classify *latest_message* in the context of *history*.

        Never raises: oracle failures and unknown labels yield
        ``GENERAL_CONVERSATION``.
        """
        prompt = build_classification_prompt(
            format_history(history, self._history_max_turns), latest_message
        )
        try:
            raw = await self._completion.complete(prompt)
        except OracleError as exc:
            logger.warning("Intent classification failed, using fallback: %s", exc)
            return FALLBACK_INTENT

        intent = parse_intent(raw)
        logger.info("Classified intent: %s (message=%s)", intent.value, latest_message[:50])
        return intent
