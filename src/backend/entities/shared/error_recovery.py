"""User-facing messages for failed turns.

Pure functions that classify validation violations and build the fixed
replies the assistant returns when a step cannot complete.
"""

from __future__ import annotations

# ── Fixed replies ────────────────────────────────────────────────────────

KNOWLEDGE_BASE_UNAVAILABLE = (
    "I'm sorry, I can't access my knowledge base right now. Please try again later."
)

REPHRASE_REQUEST = (
    "I'm sorry, I had trouble understanding how to find that information. "
    "Could you rephrase your question?"
)

COULD_NOT_PHRASE_ANSWER = (
    "I found some information, but I had trouble phrasing the answer. "
    "Please try asking again."
)

GENERIC_APOLOGY = "I'm sorry, something went wrong while handling your request. Please try again."

NO_RESULTS_TEMPLATE = (
    "I couldn't find any information for your query. I used this SQL to check: `{query}`. "
    "Please try rephrasing your question."
)

DATABASE_ERROR_TEMPLATE = "I'm sorry, I ran into a database error. The generated query was: `{query}`"

NO_DATE_OPTIONS_TEMPLATE = (
    "I couldn't find any dates with records for flight {flight}. "
    "Please check the flight number and try again."
)

DATE_QUESTION_TEMPLATE = "Which date are you interested in for flight {flight}?"

# ── Error classification patterns ────────────────────────────────────────

_DISALLOWED_TABLE_PATTERNS = {"not in the allowlist", "does not reference a table"}
_UNKNOWN_COLUMN_PATTERNS = {"unknown column"}
_SYNTAX_PATTERNS = {"unbalanced", "does not start with select", "query is empty", "statement type"}


def classify_violations(violations: list[str]) -> str:
    """Classify validation violations into a category.

    Args:
        violations: List of violation description strings.

    Returns:
        One of 'disallowed_tables', 'unknown_columns', 'syntax', or 'generic'.
    """
    combined = " ".join(violations).lower()
    for pattern in _DISALLOWED_TABLE_PATTERNS:
        if pattern in combined:
            return "disallowed_tables"
    for pattern in _UNKNOWN_COLUMN_PATTERNS:
        if pattern in combined:
            return "unknown_columns"
    for pattern in _SYNTAX_PATTERNS:
        if pattern in combined:
            return "syntax"
    return "generic"


def build_rephrase_message(violations: list[str] | None = None) -> str:
    """Build the reply for a turn whose query could not be generated.

    Args:
        violations: Validator violations, if validation caused the failure.

    Returns:
        A short user-facing message. Violation text itself is never shown.
    """
    category = classify_violations(violations or [])
    if category == "disallowed_tables":
        return (
            "I can only answer questions about the flight schedule. "
            "Could you rephrase your question about a flight, airline, gate or delay?"
        )
    if category == "unknown_columns":
        return (
            "I don't have that kind of information in the flight schedule. "
            "Could you ask about status, times, gates, delays or airports instead?"
        )
    return REPHRASE_REQUEST


def no_results_message(query: str) -> str:
    return NO_RESULTS_TEMPLATE.format(query=query)


def database_error_message(query: str | None) -> str:
    return DATABASE_ERROR_TEMPLATE.format(query=query or "(none)")


def no_date_options_message(flight: str) -> str:
    return NO_DATE_OPTIONS_TEMPLATE.format(flight=flight)


def date_question(flight: str) -> str:
    """Clarification prompt shown with the date options."""
    return DATE_QUESTION_TEMPLATE.format(flight=flight)
