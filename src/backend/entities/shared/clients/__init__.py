"""Shared clients for the oracle and Supabase."""

from .completion_client import AgentCompletionClient, create_completion_agent
from .supabase_client import (
    SupabaseFlightStore,
    SupabaseInteractionLogger,
    SupabaseSchemaProvider,
    create_supabase_client,
)

__all__ = [
    "AgentCompletionClient",
    "SupabaseFlightStore",
    "SupabaseInteractionLogger",
    "SupabaseSchemaProvider",
    "create_completion_agent",
    "create_supabase_client",
]
