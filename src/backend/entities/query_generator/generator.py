"""
Parameter / SQL generation for data turns.

One oracle call per turn produces either lookup parameters, a SELECT
statement, or a request for the missing date. The reply is interpreted
into a ``GenerationResult`` and then checked here: identities are carried
over from history, dates are normalized, textual equality is rewritten
to ILIKE, and SQL is validated against the table schema.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any, Literal

from entities.query_validator.validator import validate_query
from entities.shared.errors import QueryGenerationError
from entities.shared.history import (
    bot_asked_for_date,
    established_flight_identity,
    find_flight_identity,
    format_history,
    last_bot_turn,
)
from entities.shared.parsing import extract_select_statement, parse_json_object
from entities.shared.protocols import CompletionClient
from models import (
    ExtractedParameters,
    FlightIdentity,
    GenerationResult,
    NeedsClarificationResult,
    ParametersResult,
    RawQueryResult,
    SchemaDescriptor,
    SQLDraft,
    Turn,
)

from .prompts import FUZZY_COLUMNS, build_parameters_prompt, build_sql_prompt

logger = logging.getLogger(__name__)

GenerationMode = Literal["parameters", "sql"]

_ISO_DATE_PATTERN = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

_RELATIVE_DAYS = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
    "yesterday": -1,
}

_EQUALS_ON_FUZZY_COLUMN = re.compile(
    r"((?:\b[A-Za-z_][A-Za-z0-9_]*\.)?\b(?:" + "|".join(FUZZY_COLUMNS) + r")\b)"
    r"\s*=\s*'((?:[^']|'')*)'",
    re.IGNORECASE,
)


# ── Pure helpers ─────────────────────────────────────────────────────────


def resolve_date(text: str, today: date) -> str | None:
    """Find a date in *text* and return it as ``YYYY-MM-DD``.

    Recognizes ISO dates and the words today, tonight, tomorrow and
    yesterday (resolved against *today*).
    """
    match = _ISO_DATE_PATTERN.search(text)
    if match:
        try:
            return date.fromisoformat(match.group(1)).isoformat()
        except ValueError:
            return None

    lowered = text.lower()
    for word, offset in _RELATIVE_DAYS.items():
        if re.search(rf"\b{word}\b", lowered):
            return (today + timedelta(days=offset)).isoformat()
    return None


def rewrite_fuzzy_equality(sql: str) -> str:
    """Rewrite ``col = 'v'`` on textual identifier columns to ``col ILIKE '%v%'``."""

    def _replace(match: re.Match[str]) -> str:
        column, value = match.group(1), match.group(2)
        if "%" not in value:
            value = f"%{value}%"
        return f"{column} ILIKE '{value}'"

    return _EQUALS_ON_FUZZY_COLUMN.sub(_replace, sql)


def _clean_identity(airline_code: Any, flight_number: Any) -> FlightIdentity:
    """Normalize an airline code / flight number pair from oracle output."""
    code = re.sub(r"[^A-Za-z0-9]", "", str(airline_code)).upper() if airline_code else None
    number = re.sub(r"\s+", "", str(flight_number)) if flight_number else None

    # "BA2490" returned as the flight number
    if number and not number.isdigit():
        split = find_flight_identity(number)
        if split.is_known():
            code = code or split.airline_code
            number = split.flight_number

    return FlightIdentity(airline_code=code or None, flight_number=number or None)


def interpret_generation_output(raw: str) -> GenerationResult | None:
    """Interpret the oracle's reply as one of the three result shapes.

    Returns:
        The result, or ``None`` if the reply matches no shape.
    """
    parsed = parse_json_object(raw)
    if parsed is not None:
        identity = _clean_identity(
            parsed.get("airlineCode") or parsed.get("airline_code"),
            parsed.get("flightNumber") or parsed.get("flight_number"),
        )
        if parsed.get("requiresClarification") or parsed.get("missingParameter"):
            return NeedsClarificationResult(identity=identity)

        origin_date = parsed.get("originDate") or parsed.get("origin_date")
        if identity.airline_code or identity.flight_number or origin_date:
            return ParametersResult(
                value=ExtractedParameters(
                    airline_code=identity.airline_code,
                    flight_number=identity.flight_number,
                    origin_date=str(origin_date) if origin_date else None,
                )
            )
        return None

    sql = extract_select_statement(raw)
    if sql:
        return RawQueryResult(sql=sql)
    return None


def merge_identity(primary: FlightIdentity, fallback: FlightIdentity) -> FlightIdentity:
    """Fill gaps in *primary* from *fallback* when they describe the same flight."""
    if not primary.flight_number and not primary.airline_code:
        return fallback if fallback.is_known() else primary
    if primary.airline_code or not primary.flight_number:
        return primary
    if fallback.flight_number == primary.flight_number and fallback.airline_code:
        return primary.model_copy(update={"airline_code": fallback.airline_code})
    return primary


# ── Generator ────────────────────────────────────────────────────────────


class QueryGenerator:
    """Turns a data question into a ``GenerationResult``.

    Args:
        completion: Oracle client.
        allowed_tables: Tables generated SQL may reference.
        history_max_turns: Only the most recent turns are rendered into prompts.
        include_sample_row: Include the schema's sample row in prompts.
        today: Callable returning the server date; injectable for tests.
    """

    def __init__(
        self,
        completion: CompletionClient,
        allowed_tables: frozenset[str],
        history_max_turns: int | None = None,
        include_sample_row: bool = False,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._completion = completion
        self._allowed_tables = allowed_tables
        self._history_max_turns = history_max_turns
        self._include_sample_row = include_sample_row
        self._today = today

    async def generate(
        self,
        history: list[Turn],
        latest_message: str,
        schema: SchemaDescriptor,
        mode: GenerationMode,
    ) -> GenerationResult:
        """Generate lookup parameters or SQL for *latest_message*.

        Args:
            history: Prior turns, oldest first.
            latest_message: The user's message for this turn.
            schema: Description of the queryable table.
            mode: ``"parameters"`` for the stored lookup, ``"sql"`` for free SQL.

        Returns:
            ``ParametersResult``, ``RawQueryResult`` or ``NeedsClarificationResult``.

        Raises:
            QueryGenerationError: If the reply has no usable shape or fails validation.
            OracleError: If the oracle call itself fails.
        """
        today = self._today()
        schema_text = schema.to_prompt_text(include_sample_row=self._include_sample_row)
        history_text = format_history(history, self._history_max_turns)

        if mode == "parameters":
            prompt = build_parameters_prompt(schema_text, history_text, latest_message, today)
        else:
            prompt = build_sql_prompt(
                schema_text, schema.table_name, history_text, latest_message, today
            )

        raw = await self._completion.complete(prompt)
        result = interpret_generation_output(raw)
        if result is None:
            logger.warning("Generation output matched no expected shape: %s", raw[:200])
            raise QueryGenerationError("Oracle output matched no expected shape")

        logger.info("Generation result kind: %s (mode=%s)", result.kind, mode)

        if isinstance(result, RawQueryResult):
            return self._check_sql(result, latest_message, schema)

        asked_for_date = bot_asked_for_date(last_bot_turn(history))
        identity = self._identity_for_turn(result, history, latest_message)

        if isinstance(result, NeedsClarificationResult):
            supplied_date = resolve_date(latest_message, today)
            if not asked_for_date and not supplied_date:
                return NeedsClarificationResult(identity=identity)
            # The user already answered (or just gave) the date; do not ask again
            if not supplied_date:
                raise QueryGenerationError("Could not read the date the user supplied")
            logger.info(
                "Replacing repeated clarification with parameters for %s on %s",
                identity.flight_number,
                supplied_date,
            )
            return self._parameters(identity, supplied_date)

        origin_date = result.value.origin_date
        if origin_date:
            normalized = resolve_date(origin_date, today)
            if normalized is None:
                raise QueryGenerationError(f"Unreadable origin date: {origin_date}")
            return self._parameters(identity, normalized)

        supplied_date = resolve_date(latest_message, today)
        if supplied_date:
            return self._parameters(identity, supplied_date)
        if asked_for_date:
            raise QueryGenerationError("Could not read the date the user supplied")
        if identity.is_known():
            return NeedsClarificationResult(identity=identity)
        raise QueryGenerationError("Lookup has no flight and no date")

    # -- helpers --

    def _identity_for_turn(
        self,
        result: ParametersResult | NeedsClarificationResult,
        history: list[Turn],
        latest_message: str,
    ) -> FlightIdentity:
        """Combine the oracle's identity with what the message and history establish."""
        if isinstance(result, ParametersResult):
            identity = FlightIdentity(
                airline_code=result.value.airline_code,
                flight_number=result.value.flight_number,
            )
        else:
            identity = result.identity

        identity = merge_identity(identity, find_flight_identity(latest_message))
        return merge_identity(identity, established_flight_identity(history))

    @staticmethod
    def _parameters(identity: FlightIdentity, origin_date: str) -> ParametersResult:
        if not identity.is_known() and not identity.airline_code:
            raise QueryGenerationError("No flight established for the supplied date")
        return ParametersResult(
            value=ExtractedParameters(
                airline_code=identity.airline_code,
                flight_number=identity.flight_number,
                origin_date=origin_date,
            )
        )

    def _check_sql(
        self, result: RawQueryResult, latest_message: str, schema: SchemaDescriptor
    ) -> RawQueryResult:
        sql = rewrite_fuzzy_equality(result.sql)
        draft = validate_query(
            SQLDraft(completed_sql=sql, user_query=latest_message),
            self._allowed_tables,
            schema.column_names,
        )
        if not draft.is_valid:
            logger.warning("Generated SQL failed validation: %s", draft.query_violations)
            raise QueryGenerationError(
                "Generated SQL failed validation", violations=draft.query_violations
            )
        return RawQueryResult(sql=sql)
