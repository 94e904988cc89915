"""Exception taxonomy for the flight agent.

Each step raises one of these; the router converts them into the
user-facing messages in ``error_recovery``. Anything that is not an
``AgentError`` reaches the HTTP boundary and becomes a 500 envelope.
"""

from __future__ import annotations


class AgentError(Exception):
    """Base class for recoverable agent failures."""


class OracleError(AgentError):
    """Completion call failed or returned an empty payload."""


class SchemaUnavailableError(AgentError):
    """Metadata store lookup failed or returned an unusable document."""


class QueryGenerationError(AgentError):
    """Oracle output matched no expected shape or failed validation.

    Args:
        message: Diagnostic for the logs.
        violations: Validator violations, when validation was the cause.
    """

    def __init__(self, message: str, violations: list[str] | None = None) -> None:
        super().__init__(message)
        self.violations = violations or []


class QueryExecutionError(AgentError):
    """Data store rejected or failed the query.

    Args:
        message: Error reported by the data store.
        query: The statement (or call description) that was attempted.
    """

    def __init__(self, message: str, query: str | None = None) -> None:
        super().__init__(message)
        self.query = query


class SummarizationError(AgentError):
    """Oracle returned an empty or unusable summary."""
