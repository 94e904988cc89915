"""
Date options for a flight whose lookup is missing a date.

Instead of asking an open question, the assistant offers the dates on
which the flight actually has records, most recent first.
"""

import logging
import re
from datetime import date

from entities.shared.errors import QueryExecutionError
from entities.shared.protocols import FlightDataStore
from models import FlightIdentity

logger = logging.getLogger(__name__)

# Identity values are interpolated into SQL, so only these survive
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


def _sanitize(value: str | None) -> str:
    return _UNSAFE_CHARS.sub("", value or "")


def build_date_options_query(identity: FlightIdentity, table: str, limit: int) -> str | None:
    """Build the DISTINCT-date lookup for *identity*.

    Returns:
        The SELECT statement, or ``None`` if no usable flight number remains
        after sanitizing.
    """
    flight_number = _sanitize(identity.flight_number)
    if not flight_number:
        return None

    conditions = [f"flight_number ILIKE '%{flight_number}%'"]
    airline_code = _sanitize(identity.airline_code)
    if airline_code:
        conditions.append(f"airline_code ILIKE '%{airline_code}%'")

    return (
        f"SELECT DISTINCT origin_date_time::date AS origin_date FROM {table} "  # noqa: S608
        f"WHERE {' AND '.join(conditions)} "
        f"ORDER BY 1 DESC LIMIT {int(limit)}"
    )


def _to_iso_date(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()[:10]
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        return None


class ClarificationResolver:
    """Resolves the date options for a clarification request.

    Args:
        store: Data store used to look up the flight's dates.
        table: The flight schedule table.
        max_options: Cap on the number of options offered.
    """

    def __init__(self, store: FlightDataStore, table: str, max_options: int = 10) -> None:
        self._store = store
        self._table = table
        self._max_options = max_options

    async def resolve_options(self, identity: FlightIdentity) -> list[str]:
        """Return the flight's available dates as ``YYYY-MM-DD``, newest first.

        An empty list means no options were found.

        Raises:
            QueryExecutionError: If the data store call fails.
        """
        query = build_date_options_query(identity, self._table, self._max_options)
        if query is None:
            return []

        result = await self._store.execute_query(query)
        if not result.success:
            raise QueryExecutionError(result.error or "Date lookup failed", query=query)

        dates: set[str] = set()
        for row in result.rows:
            iso = _to_iso_date(row.get("origin_date", next(iter(row.values()), None)))
            if iso:
                dates.add(iso)

        options = sorted(dates, reverse=True)[: self._max_options]
        logger.info(
            "Resolved %d date options for flight %s%s",
            len(options),
            identity.airline_code or "",
            identity.flight_number or "",
        )
        return options
