"""Shared test fixtures for the flight assistant."""

import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import Any

import pytest

# Ensure src/backend/ is on the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src" / "backend"))

from config.settings import Settings
from entities.shared.errors import OracleError, SchemaUnavailableError
from entities.shared.protocols import NoOpReporter
from entities.workflow.clients import AgentClients
from models import QueryResult, SchemaDescriptor, TableColumn

TODAY = date(2024, 8, 15)

FLIGHT_COLUMNS: list[tuple[str, str]] = [
    ("flight_schedule_id", "BIGINT"),
    ("airline_code", "VARCHAR"),
    ("airline_name", "VARCHAR"),
    ("flight_number", "VARCHAR"),
    ("origin_date_time", "TIMESTAMP"),
    ("scheduled_departure_time", "TIMESTAMP"),
    ("estimated_departure_time", "TIMESTAMP"),
    ("actual_departure_time", "TIMESTAMP"),
    ("scheduled_arrival_time", "TIMESTAMP"),
    ("actual_arrival_time", "TIMESTAMP"),
    ("departure_airport_name", "VARCHAR"),
    ("arrival_airport_name", "VARCHAR"),
    ("gate_name", "VARCHAR"),
    ("terminal_name", "VARCHAR"),
    ("operational_status_description", "VARCHAR"),
    ("delay_duration", "INTERVAL"),
    ("delay_code", "VARCHAR"),
    ("remark_free_text", "TEXT"),
]

# ---------------------------------------------------------------------------
# Protocol fakes
# ---------------------------------------------------------------------------


class FakeCompletionClient:
    """In-memory fake satisfying the ``CompletionClient`` protocol.

    Returns scripted replies in order and records every prompt. A reply
    that is an exception instance is raised instead of returned.
    """

    def __init__(self, replies: list[str | Exception] | None = None) -> None:
        self.replies: list[str | Exception] = list(replies or [])
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        """Pop the next scripted reply."""
        self.prompts.append(prompt)
        if not self.replies:
            raise OracleError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeFlightStore:
    """In-memory fake satisfying the ``FlightDataStore`` protocol.

    ``query_results`` are consumed in order by ``execute_query``; once
    empty, ``rows`` / ``error`` are used. Every call is recorded.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        error: str | None = None,
        lookup_rows: list[dict[str, Any]] | None = None,
        lookup_error: str | None = None,
        query_results: list[QueryResult] | None = None,
    ) -> None:
        self.rows = rows or []
        self.error = error
        self.lookup_rows = lookup_rows or []
        self.lookup_error = lookup_error
        self.query_results = list(query_results or [])
        self.query_calls: list[str] = []
        self.lookup_calls: list[dict[str, str | None]] = []

    @property
    def call_count(self) -> int:
        return len(self.query_calls) + len(self.lookup_calls)

    async def execute_query(self, query: str) -> QueryResult:
        self.query_calls.append(query)
        if self.query_results:
            return self.query_results.pop(0)
        if self.error:
            return QueryResult.failure(self.error)
        return QueryResult.from_rows(self.rows)

    async def lookup_flight_info(
        self,
        airline_code: str | None = None,
        flight_number: str | None = None,
        origin_date: str | None = None,
    ) -> QueryResult:
        self.lookup_calls.append(
            {
                "airline_code": airline_code,
                "flight_number": flight_number,
                "origin_date": origin_date,
            }
        )
        if self.lookup_error:
            return QueryResult.failure(self.lookup_error)
        return QueryResult.from_rows(self.lookup_rows)


class FakeSchemaProvider:
    """In-memory fake satisfying the ``SchemaProvider`` protocol."""

    def __init__(self, schema: SchemaDescriptor | None = None, unavailable: bool = False) -> None:
        self.schema = schema
        self.unavailable = unavailable
        self.calls: list[str] = []

    async def get_schema(self, table_name: str) -> SchemaDescriptor:
        self.calls.append(table_name)
        if self.unavailable or self.schema is None:
            raise SchemaUnavailableError(f"No schema metadata for table '{table_name}'")
        return self.schema


class FakeInteractionLogger:
    """Records interactions; optionally fails every write.

    When ``release`` is given, each write waits for the event first,
    standing in for a slow insert.
    """

    def __init__(self, fail: bool = False, release: asyncio.Event | None = None) -> None:
        self.fail = fail
        self.release = release
        self.records: list[tuple[str, str | None, str]] = []

    async def log_interaction(self, question: str, query: str | None, answer: str) -> None:
        if self.release is not None:
            await self.release.wait()
        if self.fail:
            raise RuntimeError("insert failed")
        self.records.append((question, query, answer))


class SpyReporter:
    """Spy satisfying the ``ProgressReporter`` protocol.

    Captures every ``step_start`` / ``step_end`` call for assertions.
    """

    def __init__(self) -> None:
        self.events: list[dict[str, str]] = []

    def step_start(self, step: str) -> None:
        """Record a step-start event."""
        self.events.append({"step": step, "status": "started"})

    def step_end(self, step: str) -> None:
        """Record a step-end event."""
        self.events.append({"step": step, "status": "completed"})


def make_clients(
    completion: FakeCompletionClient,
    store: FakeFlightStore | None = None,
    schema_provider: FakeSchemaProvider | None = None,
    reporter: Any = None,
    interaction_logger: FakeInteractionLogger | None = None,
) -> AgentClients:
    """Build ``AgentClients`` from fakes with the flight schema available."""
    return AgentClients(
        completion=completion,
        schema_provider=schema_provider or FakeSchemaProvider(build_flight_schema()),
        store=store or FakeFlightStore(),
        allowed_tables=frozenset({"flight_schedule"}),
        reporter=reporter or NoOpReporter(),
        interaction_logger=interaction_logger,
    )


def build_flight_schema() -> SchemaDescriptor:
    return SchemaDescriptor(
        table_name="flight_schedule",
        columns=[TableColumn(name=name, type=col_type) for name, col_type in FLIGHT_COLUMNS],
    )


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Return a ``Settings`` instance populated with safe test defaults."""
    return Settings(
        azure_ai_project_endpoint="https://test.services.ai.azure.com/api/projects/test",
        azure_ai_model_deployment_name="test-model",
        supabase_url="https://test.supabase.co",
        supabase_key="test-key",
        lookup_mode="parameters",
        enable_interaction_logging=False,
    )


@pytest.fixture
def flight_schema() -> SchemaDescriptor:
    """Return the ``flight_schedule`` schema used across tests."""
    return build_flight_schema()


@pytest.fixture
def spy_reporter() -> SpyReporter:
    """Return a fresh ``SpyReporter`` instance."""
    return SpyReporter()


@pytest.fixture
def noop_reporter() -> NoOpReporter:
    """Return a ``NoOpReporter`` from the protocols module."""
    return NoOpReporter()
