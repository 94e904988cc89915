"""
Shared models for entities.

These models are used across the agent components and the API.
All models are re-exported here.
"""

from .conversation import AgentResponse, ChatRequest, SearchParams, Turn
from .execution import QueryResult
from .generation import (
    ExtractedParameters,
    FlightIdentity,
    GenerationResult,
    Intent,
    NeedsClarificationResult,
    ParametersResult,
    RawQueryResult,
    SQLDraft,
)
from .schema import SchemaDescriptor, TableColumn

__all__ = [
    # Conversation (API request/response)
    "AgentResponse",
    "ChatRequest",
    "SearchParams",
    "Turn",
    # Schema (metadata store)
    "SchemaDescriptor",
    "TableColumn",
    # Generation (intent, parameters, SQL)
    "ExtractedParameters",
    "FlightIdentity",
    "GenerationResult",
    "Intent",
    "NeedsClarificationResult",
    "ParametersResult",
    "RawQueryResult",
    "SQLDraft",
    # Execution (query results)
    "QueryResult",
]
