"""Pure query validation logic.

Validates SQL queries for syntax, table allowlist compliance,
statement type, column membership, and security patterns. No I/O, no
framework dependencies, suitable for direct unit testing.
"""

from __future__ import annotations

import logging
import re

from models import SQLDraft

logger = logging.getLogger(__name__)

# SQL injection patterns to detect
SQL_INJECTION_PATTERNS = [
    r";\s*--",  # Comment after semicolon
    r"'\s*OR\s+'?\d+'?\s*=\s*'?\d+'?",  # ' OR '1'='1'
    r"'\s*OR\s+''='",  # ' OR ''='
    r"UNION\s+(?:ALL\s+)?SELECT",  # UNION injection
    r"INTO\s+OUTFILE",  # File write attempt
    r"\bpg_sleep\b",  # Time-based injection
    r"\bpg_read_file\b",  # File read attempt
    r"\blo_import\b",  # Large-object file read
    r"\bdblink\b",  # Cross-database access
    r"\bINFORMATION_SCHEMA\b",  # Schema enumeration
    r"\bpg_catalog\b",  # System catalog access
    r"\bSELECT\b[^;]*\bINTO\b",  # SELECT ... INTO creates a table
]

# Dangerous keywords that should not appear in SELECT queries
DANGEROUS_KEYWORDS = [
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "MERGE",
    "UPSERT",
    "EXEC",
    "EXECUTE",
    "CALL",
    "DO",
    "COPY",
    "GRANT",
    "REVOKE",
    "VACUUM",
    "REINDEX",
    "LOCK",
    "COMMENT",
]

# Words that may appear as bare identifiers in a SELECT without being columns
SQL_WORDS = frozenset({
    "select", "from", "where", "and", "or", "not", "in", "is", "null", "like", "ilike",
    "as", "on", "group", "by", "order", "asc", "desc", "limit", "offset", "having",
    "distinct", "case", "when", "then", "else", "end", "between", "true", "false",
    "interval", "date", "timestamp", "time", "with", "without", "zone", "current_date",
    "current_timestamp", "current_time", "localtimestamp", "now", "epoch", "day", "days",
    "hour", "hours", "minute", "minutes", "second", "seconds", "month", "months", "year",
    "years", "week", "weeks", "dow", "isodow", "doy", "quarter", "join", "inner", "left",
    "right", "outer", "full", "cross", "nulls", "first", "last", "all", "any", "some",
    "exists", "filter", "over", "partition", "rows", "range", "cast", "text", "varchar",
    "char", "numeric", "integer", "int", "bigint", "float", "real", "double", "precision",
    "boolean", "at", "similar", "to", "escape", "unknown", "lateral", "using", "natural",
    "fetch", "next", "only", "percent", "ties", "within", "public",
})

_TABLE_WITH_ALIAS_PATTERN = (
    r"(?:FROM|JOIN)\s+"
    r"([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)"
    r"(?:\s+(?:AS\s+)?([A-Za-z_][A-Za-z0-9_]*))?"
)

_ALIAS_KEYWORDS = {
    "WHERE", "GROUP", "ORDER", "LIMIT", "JOIN", "INNER", "LEFT", "RIGHT", "FULL",
    "CROSS", "ON", "HAVING", "OFFSET", "UNION", "FETCH", "WINDOW", "EXCEPT",
    "INTERSECT", "NATURAL", "FOR",
}


def strip_string_literals(sql: str) -> str:
    """Blank out single-quoted literals and unquote double-quoted identifiers.

    ``"Delayed Flights"`` becomes ``Delayed_Flights`` so a quoted alias
    stays one identifier.
    """
    sql = re.sub(r"'(?:[^']|'')*'", "''", sql)
    return re.sub(r'"([^"]*)"', lambda m: re.sub(r"\W+", "_", m.group(1)), sql)


def _check_syntax(sql: str) -> tuple[bool, list[str]]:
    """Basic syntax check for SQL query.

    This is a lightweight check; full parsing would require a SQL parser.

    Args:
        sql: The SQL query string to check.

    Returns:
        Tuple of (is_valid, list of errors).
    """
    errors: list[str] = []
    sql_stripped = sql.strip()

    if not sql_stripped:
        errors.append("Query is empty")
        return False, errors

    if sql_stripped.count("(") != sql_stripped.count(")"):
        errors.append("Unbalanced parentheses")

    single_quotes = sql_stripped.count("'")
    if single_quotes % 2 != 0:
        errors.append("Unbalanced single quotes")

    if not sql_stripped.upper().lstrip().startswith("SELECT"):
        errors.append("Query does not start with SELECT")

    return len(errors) == 0, errors


def _check_statement_type(sql: str) -> tuple[str, bool, list[str]]:
    """Check that the query is a single SELECT statement.

    Args:
        sql: The SQL query string (string literals already blanked).

    Returns:
        Tuple of (statement_type, is_single_statement, list of violations).
    """
    violations: list[str] = []
    sql_upper = sql.strip().upper()

    first_word = sql_upper.split(None, 1)[0] if sql_upper else ""
    statement_type = first_word if first_word else "UNKNOWN"

    if statement_type != "SELECT":
        violations.append(f"Statement type is {statement_type}, must be SELECT")

    sql_trimmed = sql.strip().rstrip(";").strip()
    if ";" in sql_trimmed:
        violations.append("Multiple statements detected (semicolon found within query)")
        return statement_type, False, violations

    return statement_type, True, violations


def _is_function_argument(sql: str, position: int) -> bool:
    """True if *position* sits inside parentheses that do not open a subquery.

    ``EXTRACT(EPOCH FROM delay_duration)`` uses FROM without naming a table.
    """
    depth = 0
    for index in range(position - 1, -1, -1):
        char = sql[index]
        if char == ")":
            depth += 1
        elif char == "(":
            if depth == 0:
                return not sql[index + 1 :].lstrip().upper().startswith("SELECT")
            depth -= 1
    return False


def _referenced_tables(sql: str) -> tuple[set[str], set[str]]:
    """Return (tables, aliases) referenced in FROM/JOIN clauses."""
    tables: set[str] = set()
    aliases: set[str] = set()
    for match in re.finditer(_TABLE_WITH_ALIAS_PATTERN, sql, re.IGNORECASE):
        if _is_function_argument(sql, match.start()):
            continue
        table, alias = match.group(1), match.group(2)
        tables.add(table.strip())
        if alias and alias.upper() not in _ALIAS_KEYWORDS:
            aliases.add(alias.strip().lower())
    return tables, aliases


def _check_allowlist(sql: str, allowed_tables: set[str]) -> tuple[bool, list[str]]:
    """Check that all referenced tables are in the allowlist.

    ``public.flight_schedule`` and ``flight_schedule`` are treated as the
    same table.

    Args:
        sql: The SQL query string (string literals already blanked).
        allowed_tables: Set of permitted table names.

    Returns:
        Tuple of (is_valid, violations).
    """
    violations: list[str] = []
    allowed = {t.lower() for t in allowed_tables}

    tables_found, _ = _referenced_tables(sql)
    if not tables_found:
        violations.append("Query does not reference a table")

    for table in tables_found:
        name = table.lower()
        if name.startswith("public."):
            name = name[len("public.") :]
        if name not in allowed:
            violations.append(f"Table '{table}' is not in the allowlist")

    return len(violations) == 0, violations


def _check_columns(sql: str, allowed_columns: set[str]) -> tuple[bool, list[str]]:
    """Check that bare identifiers are schema columns, aliases, or SQL words.

    Function names (identifier followed by ``(``), type names after
    ``::``, output aliases introduced with ``AS`` and table aliases are
    not treated as column references.

    Args:
        sql: The SQL query string (string literals already blanked).
        allowed_columns: Lowercased column names of the permitted table.

    Returns:
        Tuple of (is_valid, violations).
    """
    violations: list[str] = []
    tables, table_aliases = _referenced_tables(sql)
    known = (
        set(allowed_columns)
        | SQL_WORDS
        | table_aliases
        | {t.lower() for t in tables}
        | {t.lower().split(".")[-1] for t in tables}
    )
    known |= {a.lower() for a in re.findall(r"\bAS\s+([A-Za-z_][A-Za-z0-9_]*)", sql, re.IGNORECASE)}

    unknown: list[str] = []
    for match in re.finditer(r"(?<![\w.:])([A-Za-z_][A-Za-z0-9_]*)(\.[A-Za-z_][A-Za-z0-9_]*)?", sql):
        name = match.group(1)
        qualified = match.group(2)
        tail = sql[match.end() :].lstrip()
        if tail.startswith("("):
            continue  # function call
        if qualified:
            # alias.column or schema.table
            if name.lower() in table_aliases or name.lower() in known:
                column = qualified[1:].lower()
                if column not in known and column not in unknown:
                    unknown.append(column)
            continue
        lowered = name.lower()
        if lowered not in known and lowered not in unknown:
            unknown.append(lowered)

    for column in unknown:
        violations.append(f"Unknown column '{column}' is not in the table schema")

    return len(violations) == 0, violations


def _check_security(sql: str) -> tuple[bool, list[str]]:
    """Check for SQL injection patterns and dangerous keywords.

    Args:
        sql: The SQL query string (string literals already blanked).

    Returns:
        Tuple of (is_valid, list of violations).
    """
    violations: list[str] = []

    for keyword in DANGEROUS_KEYWORDS:
        pattern = r"\b" + keyword + r"\b"
        if re.search(pattern, sql, re.IGNORECASE):
            violations.append(f"Dangerous keyword detected: {keyword}")

    for pattern in SQL_INJECTION_PATTERNS:
        if re.search(pattern, sql, re.IGNORECASE):
            violations.append("Potential SQL injection pattern detected")
            break

    return len(violations) == 0, violations


def validate_query(
    draft: SQLDraft,
    allowed_tables: set[str] | frozenset[str],
    allowed_columns: set[str] | None = None,
) -> SQLDraft:
    """Validate a SQL draft for syntax, allowlist, statement type, and security.

    Runs all validation checks and returns a new ``SQLDraft`` with
    ``query_validated=True`` and any violations/warnings populated.
    The column check runs only when *allowed_columns* is given.

    Args:
        draft: The SQL draft to validate.
        allowed_tables: Set of permitted table names.
        allowed_columns: Lowercased column names from the table schema.

    Returns:
        A new ``SQLDraft`` with validation results applied.
    """
    try:
        sql_query = draft.completed_sql or ""

        logger.info("Validating query: %s", sql_query[:200] if sql_query else "(empty)")

        all_violations: list[str] = []
        all_warnings: list[str] = []

        syntax_valid, syntax_errors = _check_syntax(sql_query)
        all_violations.extend(syntax_errors)

        sql_clean = strip_string_literals(sql_query)

        statement_type, is_single_statement, statement_violations = _check_statement_type(
            sql_clean
        )
        all_violations.extend(statement_violations)

        allowlist_valid, allowlist_violations = _check_allowlist(sql_clean, set(allowed_tables))
        all_violations.extend(allowlist_violations)

        columns_valid = True
        if allowed_columns:
            columns_valid, column_violations = _check_columns(sql_clean, allowed_columns)
            all_violations.extend(column_violations)

        security_valid, security_violations = _check_security(sql_clean)
        all_violations.extend(security_violations)

        if not re.search(r"\bLIMIT\b", sql_clean, re.IGNORECASE) and not re.search(
            r"\b(COUNT|SUM|AVG|MIN|MAX)\s*\(", sql_clean, re.IGNORECASE
        ):
            all_warnings.append("Query has no LIMIT clause")

        is_valid = (
            syntax_valid
            and allowlist_valid
            and columns_valid
            and statement_type == "SELECT"
            and is_single_statement
            and security_valid
        )

        logger.info(
            "Validation complete: valid=%s, violations=%d, warnings=%d",
            is_valid,
            len(all_violations),
            len(all_warnings),
        )

        return draft.model_copy(
            update={
                "query_validated": True,
                "query_violations": all_violations,
                "query_warnings": all_warnings,
            }
        )

    except Exception as exc:
        logger.exception("Validation error")
        return draft.model_copy(
            update={
                "query_validated": True,
                "query_violations": [f"Validation error: {exc!s}"],
                "query_warnings": [],
            }
        )


def validate_sql(
    sql: str,
    allowed_tables: set[str] | frozenset[str],
    allowed_columns: set[str] | None = None,
) -> SQLDraft:
    """Convenience wrapper validating a bare SQL string."""
    return validate_query(SQLDraft(completed_sql=sql), allowed_tables, allowed_columns)
