"""Protocol interfaces for I/O boundaries.

These protocols enable dependency injection for testability.
Production implementations wrap the Foundry agent and the Supabase
client; test fakes return canned data with zero network access.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol, runtime_checkable

from models import QueryResult, SchemaDescriptor

logger = logging.getLogger(__name__)


@runtime_checkable
class CompletionClient(Protocol):
    """Sends one prompt to the text-completion oracle."""

    async def complete(self, prompt: str) -> str:
        """Return the oracle's raw text for *prompt*.

        Raises:
            OracleError: On transport failure or an empty reply.
        """
        ...


@runtime_checkable
class SchemaProvider(Protocol):
    """Reads the table description from the metadata store."""

    async def get_schema(self, table_name: str) -> SchemaDescriptor:
        """Fetch the schema for *table_name*.

        Raises:
            SchemaUnavailableError: If the document cannot be read.
        """
        ...


@runtime_checkable
class FlightDataStore(Protocol):
    """Executes read-only lookups against the flight schedule.

    Both entry points return a ``QueryResult``; execution errors are
    reported through ``success=False`` rather than raised.
    """

    async def execute_query(self, query: str) -> QueryResult:
        """Run a generated SELECT through the generic read-only entry point."""
        ...

    async def lookup_flight_info(
        self,
        airline_code: str | None = None,
        flight_number: str | None = None,
        origin_date: str | None = None,
    ) -> QueryResult:
        """Call the parameterized stored lookup."""
        ...


@runtime_checkable
class InteractionLogger(Protocol):
    """Best-effort sink for question/query/answer records."""

    async def log_interaction(self, question: str, query: str | None, answer: str) -> None:
        """Persist one interaction. Implementations may raise; callers swallow."""
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Reports step-level progress for a single request."""

    def step_start(self, step: str) -> None:
        """Signal that a named step has started.

        Args:
            step: Human-readable step label.
        """
        ...

    def step_end(self, step: str) -> None:
        """Signal that a named step has completed.

        Args:
            step: Human-readable step label (must match a prior start).
        """
        ...


# ---------------------------------------------------------------------------
# Concrete implementations
# ---------------------------------------------------------------------------


class NoOpReporter:
    """ProgressReporter that silently discards all events.

    Useful in tests and contexts where step timings are not wanted.
    """

    def step_start(self, step: str) -> None:
        """No-op."""

    def step_end(self, step: str) -> None:
        """No-op."""


class LoggingReporter:
    """ProgressReporter that logs each step's duration in milliseconds.

    Start times are keyed by the running task so one instance can be
    shared by concurrent requests.
    """

    def __init__(self) -> None:
        self._start_times: dict[tuple[int, str], float] = {}

    @staticmethod
    def _key(step: str) -> tuple[int, str]:
        try:
            task_id = id(asyncio.current_task())
        except RuntimeError:
            task_id = 0
        return task_id, step

    def step_start(self, step: str) -> None:
        self._start_times[self._key(step)] = time.perf_counter()

    def step_end(self, step: str) -> None:
        start_time = self._start_times.pop(self._key(step), None)
        if start_time is None:
            return
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info("%s: %d ms", step, duration_ms)
