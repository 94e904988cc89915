"""Prompt builders for query generation."""

from datetime import date

FUZZY_COLUMNS = (
    "airline_code",
    "flight_number",
    "departure_airport_name",
    "arrival_airport_name",
    "airline_name",
)


def _date_rules(today: date) -> tuple[str, str]:
    iso = today.isoformat()
    return (
        f'The current date is {iso}. "today" and "tonight" mean {iso}; '
        'resolve "tomorrow" and "yesterday" relative to it.',
        "Write every date as YYYY-MM-DD.",
    )


def build_parameters_prompt(
    schema_text: str,
    history_text: str,
    latest_message: str,
    today: date,
) -> str:
    """Prompt for structured lookup parameters (``lookup_flight_info``)."""
    current_date, date_format = _date_rules(today)
    return f"""You extract the arguments for a flight lookup from the user's latest message.

**Database Schema:**
{schema_text}

**Conversation History:**
{history_text}

**User's Latest Message:** "{latest_message}"

**CRITICAL INSTRUCTIONS:**
- {current_date}
- {date_format}
- Reuse the flight (airline code and flight number) established earlier in the conversation when the latest message does not name one, e.g. "what about tomorrow?".
- If the assistant's last message asked for a date and the user now gives one, combine that date with the flight from the conversation. Do NOT ask for the date again.
- Never guess a date. If the flight is known but no date is given or established, ask for it.
- Split flight designators: "BA2490" is airlineCode "BA" and flightNumber "2490".

**Output:** return ONLY one JSON object, no markdown.
When all arguments are known:
{{"airlineCode": "BA", "flightNumber": "2490", "originDate": "YYYY-MM-DD"}}
When the date is missing:
{{"requiresClarification": true, "missingParameter": "date", "airlineCode": "BA", "flightNumber": "2490"}}

**JSON:**"""


def build_sql_prompt(
    schema_text: str,
    table_name: str,
    history_text: str,
    latest_message: str,
    today: date,
) -> str:
    """Prompt for a single read-only PostgreSQL SELECT."""
    current_date, date_format = _date_rules(today)
    fuzzy = ", ".join(f"`{c}`" for c in FUZZY_COLUMNS)
    return f"""You are an expert PostgreSQL assistant. Generate a SQL query that answers the user's question using the schema and conversation history below.

**Database Schema for '{table_name}' table:**
{schema_text}

**Conversation History:**
{history_text}

**User's Latest Question:** "{latest_message}"

**CRITICAL INSTRUCTIONS:**
1. Generate a single, valid PostgreSQL SELECT statement against `{table_name}` only.
2. Use ONLY the columns listed in the schema.
3. {current_date}
4. {date_format}
5. Use `ILIKE '%value%'` for text matching on {fuzzy}. Never compare them with `=`.
6. Filter a flight's day with `origin_date_time::date = 'YYYY-MM-DD'`.
7. `delay_duration` is an INTERVAL; a delayed flight has `delay_duration > INTERVAL '0 minutes'`.
8. Reuse the flight established earlier in the conversation when the question refers to it implicitly.
9. For counts, averages and trends use aggregate functions instead of returning every row. Otherwise add `LIMIT 50`.
10. If the question is about the status of one specific flight and no date is given or established, do NOT guess. Return instead:
{{"requiresClarification": true, "missingParameter": "date", "airlineCode": "BA", "flightNumber": "2490"}}
11. Do NOT use markdown or any other text. Return only the raw SQL query (or the JSON above).

**SQL Query:**"""
