"""Agent client container and factory for dependency injection.

``AgentClients`` bundles every I/O dependency the flight assistant
needs. Production code constructs it via ``create_agent_clients()`` from
a Foundry agent and a Supabase client; tests construct it from in-memory
fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from config.settings import Settings
from entities.shared.clients import (
    AgentCompletionClient,
    SupabaseFlightStore,
    SupabaseInteractionLogger,
    SupabaseSchemaProvider,
    create_completion_agent,
    create_supabase_client,
)
from entities.shared.clients.completion_client import load_prompt
from entities.shared.protocols import (
    CompletionClient,
    FlightDataStore,
    InteractionLogger,
    NoOpReporter,
    ProgressReporter,
    SchemaProvider,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# AgentClients dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AgentClients:
    """Immutable bundle of all I/O dependencies for the flight assistant.

    All fields use Protocol types, enabling full dependency injection.
    Production code passes the Foundry and Supabase adapters; tests pass
    fakes.

    Args:
        completion: Oracle used by every generation step.
        schema_provider: Reads the table description from the metadata store.
        store: Executes queries and stored lookups.
        allowed_tables: Tables generated SQL may reference.
        reporter: Progress reporter for step timings.
        interaction_logger: Optional sink for question/query/answer rows.
    """

    completion: CompletionClient
    schema_provider: SchemaProvider
    store: FlightDataStore
    allowed_tables: frozenset[str]
    reporter: ProgressReporter = field(default_factory=NoOpReporter)
    interaction_logger: InteractionLogger | None = None


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


async def create_agent_clients(
    settings: Settings,
    reporter: ProgressReporter | None = None,
) -> AgentClients:
    """Build ``AgentClients`` from application ``Settings``.

    Creates the Foundry ``ChatAgent`` and one shared Supabase client, then
    wraps them in Protocol adapters.

    Args:
        settings: Centralised application configuration.
        reporter: Optional progress reporter.  Defaults to ``NoOpReporter``.

    Returns:
        Fully-initialised ``AgentClients``.
    """
    from agent_framework_azure_ai import AzureAIClient  # noqa: PLC0415
    from azure.identity.aio import DefaultAzureCredential  # noqa: PLC0415

    # -- Credential --------------------------------------------------------
    credential = (
        DefaultAzureCredential(managed_identity_client_id=settings.azure_client_id)
        if settings.azure_client_id
        else DefaultAzureCredential()
    )

    # -- LLM client --------------------------------------------------------
    llm = AzureAIClient(
        project_endpoint=settings.azure_ai_project_endpoint,
        credential=credential,
        model_deployment_name=settings.azure_ai_model_deployment_name,
        use_latest_version=True,
    )
    agent = create_completion_agent(llm, load_prompt())

    # -- Supabase ----------------------------------------------------------
    supabase = await create_supabase_client(settings.supabase_url, settings.supabase_key)
    allowed_tables = frozenset({settings.flight_table})

    interaction_logger = (
        SupabaseInteractionLogger(supabase, settings.interaction_log_table)
        if settings.enable_interaction_logging
        else None
    )

    logger.info(
        "Agent clients created (model=%s, table=%s, lookup_mode=%s, logging=%s)",
        settings.azure_ai_model_deployment_name,
        settings.flight_table,
        settings.lookup_mode,
        settings.enable_interaction_logging,
    )

    return AgentClients(
        completion=AgentCompletionClient(agent),
        schema_provider=SupabaseSchemaProvider(supabase, settings.schema_metadata_table),
        store=SupabaseFlightStore(supabase, allowed_tables),
        allowed_tables=allowed_tables,
        reporter=reporter or NoOpReporter(),
        interaction_logger=interaction_logger,
    )
