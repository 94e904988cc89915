"""
Supabase-backed metadata store, data store and interaction log.

All three adapters share one ``AsyncClient`` created in the application
lifespan. Generated SQL runs through the ``execute_sql_query`` RPC and is
re-validated here before dispatch; specific lookups use the typed
``lookup_flight_info`` RPC.
"""

from __future__ import annotations

import logging
from typing import Any

from entities.query_validator.validator import validate_sql
from entities.shared.errors import SchemaUnavailableError
from models import QueryResult, SchemaDescriptor
from supabase import AsyncClient, acreate_client

logger = logging.getLogger(__name__)


async def create_supabase_client(url: str, key: str) -> AsyncClient:
    """Create the shared async Supabase client.

    Raises:
        ValueError: If the URL or key is not configured.
    """
    if not url or not key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_KEY environment variables are required."
        )
    return await acreate_client(url, key)


def _normalize_rows(data: Any) -> list[dict[str, Any]]:
    """Coerce an RPC payload into a list of row dicts.

    ``execute_sql_query`` returns a JSON array for row sets and a bare
    object for some aggregates.
    """
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [row if isinstance(row, dict) else {"value": row} for row in data]
    return [{"value": data}]


class SupabaseSchemaProvider:
    """``SchemaProvider`` reading ``schema_json`` from the metadata table.

    Args:
        client: Shared Supabase client.
        metadata_table: Table holding one ``schema_json`` row per table.
    """

    def __init__(self, client: AsyncClient, metadata_table: str) -> None:
        self._client = client
        self._metadata_table = metadata_table

    async def get_schema(self, table_name: str) -> SchemaDescriptor:
        logger.info("Fetching schema for table: %s", table_name)
        try:
            response = (
                await self._client.table(self._metadata_table)
                .select("schema_json")
                .eq("table_name", table_name)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            logger.exception("Schema metadata lookup failed")
            raise SchemaUnavailableError(str(exc)) from exc

        rows = response.data or []
        if not rows or not rows[0].get("schema_json"):
            raise SchemaUnavailableError(f"No schema metadata for table '{table_name}'")

        try:
            schema = SchemaDescriptor.from_metadata(table_name, rows[0]["schema_json"])
        except ValueError as exc:
            raise SchemaUnavailableError(str(exc)) from exc

        logger.info("Schema loaded: %s (%d columns)", table_name, len(schema.columns))
        return schema


class SupabaseFlightStore:
    """``FlightDataStore`` backed by Supabase RPCs.

    Execution failures are returned as ``QueryResult.failure`` rather
    than raised, matching the ``FlightDataStore`` contract.

    Args:
        client: Shared Supabase client.
        allowed_tables: Tables a generated query may reference.
    """

    def __init__(self, client: AsyncClient, allowed_tables: frozenset[str]) -> None:
        self._client = client
        self._allowed_tables = allowed_tables

    async def execute_query(self, query: str) -> QueryResult:
        """Validate and run a generated SELECT.

        Args:
            query: SQL SELECT statement.

        Returns:
            Rows on success; ``success=False`` if the query is rejected
            or the RPC fails.
        """
        draft = validate_sql(query, self._allowed_tables)
        if not draft.is_valid:
            logger.warning("Rejected query before execution: %s", draft.query_violations)
            return QueryResult.failure("Query rejected: " + "; ".join(draft.query_violations))

        logger.info("Executing SQL: %s", query[:200])
        try:
            response = await self._client.rpc("execute_sql_query", {"query_text": query}).execute()
        except Exception as exc:
            logger.exception("SQL execution error")
            return QueryResult.failure(str(exc))

        result = QueryResult.from_rows(_normalize_rows(response.data))
        logger.info("Query returned %d rows", result.row_count)
        return result

    async def lookup_flight_info(
        self,
        airline_code: str | None = None,
        flight_number: str | None = None,
        origin_date: str | None = None,
    ) -> QueryResult:
        """Call the parameterized ``lookup_flight_info`` RPC."""
        params = {
            "p_airline_code": airline_code,
            "p_flight_number": flight_number,
            "p_origin_date": origin_date,
        }
        logger.info("Calling lookup_flight_info: %s", params)
        try:
            response = await self._client.rpc("lookup_flight_info", params).execute()
        except Exception as exc:
            logger.exception("Flight lookup error")
            return QueryResult.failure(str(exc))

        result = QueryResult.from_rows(_normalize_rows(response.data))
        logger.info("Lookup returned %d rows", result.row_count)
        return result


class SupabaseInteractionLogger:
    """``InteractionLogger`` inserting one row per answered turn."""

    def __init__(self, client: AsyncClient, table: str) -> None:
        self._client = client
        self._table = table

    async def log_interaction(self, question: str, query: str | None, answer: str) -> None:
        await (
            self._client.table(self._table)
            .insert({"question": question, "sql_query": query, "answer": answer})
            .execute()
        )
