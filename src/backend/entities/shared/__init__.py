"""Shared utilities for the assistant steps."""

from .errors import (
    AgentError,
    OracleError,
    QueryExecutionError,
    QueryGenerationError,
    SchemaUnavailableError,
    SummarizationError,
)
from .protocols import (
    CompletionClient,
    FlightDataStore,
    InteractionLogger,
    LoggingReporter,
    NoOpReporter,
    ProgressReporter,
    SchemaProvider,
)

__all__ = [
    "AgentError",
    "CompletionClient",
    "FlightDataStore",
    "InteractionLogger",
    "LoggingReporter",
    "NoOpReporter",
    "OracleError",
    "ProgressReporter",
    "QueryExecutionError",
    "QueryGenerationError",
    "SchemaProvider",
    "SchemaUnavailableError",
    "SummarizationError",
]
