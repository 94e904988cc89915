"""Helpers over the client-held conversation history.

The agent keeps no session state, so everything it knows about earlier
turns is recovered from the ``Turn`` list sent with each request.
"""

from __future__ import annotations

import re
from datetime import date

from models import FlightIdentity, Turn

EMPTY_HISTORY_TEXT = "No conversation history yet."

# "BA2490", "ba2490", "UA55"; mixed codes ("B61234") need a 3-4 digit number
_ATTACHED_FLIGHT = re.compile(
    r"\b(?:([A-Za-z]{2})(\d{1,4})|([A-Za-z]\d|\d[A-Za-z])(\d{3,4}))\b"
)
# "BA 2490" (upper-case code only, to avoid matching ordinary words)
_SPACED_FLIGHT = re.compile(r"\b(?:([A-Z]{2}) (\d{1,4})|([A-Z]\d|\d[A-Z]) (\d{3,4}))\b")
# "flight 131", "flight number 131"
_BARE_FLIGHT = re.compile(r"\bflight\s+(?:number\s+|no\.?\s*|#)?(\d{1,4})\b", re.IGNORECASE)
# "gate D12", "stand AB12", "terminal 2E" name places, not flights
_LOCATION_BEFORE = re.compile(
    r"\b(?:gate|stand|terminal|carousel|belt)\s*(?:number\s*|no\.?\s*|#)?$", re.IGNORECASE
)

# A question sentence that mentions a date: "Which date are you interested in?"
_DATE_QUESTION = re.compile(r"\bdates?\b[^.!?]*\?", re.IGNORECASE)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_history(history: list[Turn], max_turns: int | None = None) -> str:
    """Render turns as a ``User:`` / ``Assistant:`` transcript.

    Args:
        history: Prior turns, oldest first.
        max_turns: Keep only the most recent turns when set.

    Returns:
        The transcript, or a fixed placeholder for an empty history.
    """
    if not history:
        return EMPTY_HISTORY_TEXT
    turns = history[-max_turns:] if max_turns else history
    return "\n".join(
        f"{'User' if turn.sender == 'user' else 'Assistant'}: {turn.text}" for turn in turns
    )


def last_bot_turn(history: list[Turn]) -> Turn | None:
    for turn in reversed(history):
        if turn.sender == "bot":
            return turn
    return None


def last_generated_query(history: list[Turn]) -> str | None:
    """Return the ``generated_query`` of the last bot turn, if it has one."""
    turn = last_bot_turn(history)
    return turn.generated_query if turn is not None else None


def _designator(text: str) -> FlightIdentity | None:
    for pattern in (_ATTACHED_FLIGHT, _SPACED_FLIGHT):
        for match in pattern.finditer(text):
            if _LOCATION_BEFORE.search(text[: match.start()]):
                continue
            code = match.group(1) or match.group(3)
            number = match.group(2) or match.group(4)
            return FlightIdentity(airline_code=code.upper(), flight_number=number)
    return None


def find_flight_identity(text: str) -> FlightIdentity:
    """Pull an airline code / flight number out of free text.

    Gate, stand and terminal names ("gate D12") are not read as flights.
    """
    identity = _designator(text)
    if identity is not None:
        return identity
    match = _BARE_FLIGHT.search(text)
    if match:
        return FlightIdentity(flight_number=match.group(1))
    return FlightIdentity()


def established_flight_identity(history: list[Turn]) -> FlightIdentity:
    """Return the most recently mentioned flight in the history.

    User turns are searched first (newest to oldest); bot turns are used
    only when no user turn names a flight.
    """
    for sender in ("user", "bot"):
        for turn in reversed(history):
            if turn.sender != sender:
                continue
            identity = find_flight_identity(turn.text)
            if identity.is_known():
                return identity
    return FlightIdentity()


def bot_asked_for_date(turn: Turn | None) -> bool:
    """True if *turn* is a bot message asking the user to pick a date.

    Either the turn offered date options, or one of its questions names
    the word "date" ("updated ...?" does not count).
    """
    if turn is None or turn.sender != "bot":
        return False
    if turn.follow_up_options and all(_is_iso_date(o) for o in turn.follow_up_options):
        return True
    return _DATE_QUESTION.search(turn.text) is not None


def _is_iso_date(value: str) -> bool:
    if not _ISO_DATE.match(value.strip()):
        return False
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True
