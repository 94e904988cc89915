"""Centralized application settings loaded from environment variables.

All configuration is defined once here. Other modules should import
``get_settings()`` rather than calling ``os.getenv()`` directly.
"""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration backed by environment variables.

    Field names are **lowercased** versions of the env-var names.
    ``pydantic-settings`` maps them automatically (case-insensitive).

    Example::

        settings = Settings()  # reads .env + real env
        table = settings.flight_table
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- Azure AI / Foundry ------------------------------------------------

    azure_ai_project_endpoint: str = ""
    """Foundry project endpoint URL."""

    azure_ai_model_deployment_name: str = "gpt-4o"
    """Model deployment used for every oracle call."""

    azure_client_id: str | None = None
    """Managed-identity client ID (None → system-assigned)."""

    # -- Supabase ----------------------------------------------------------

    supabase_url: str = ""
    """Supabase project URL."""

    supabase_key: str = ""
    """Supabase anon or service key."""

    flight_table: str = "flight_schedule"
    """The single table the agent is allowed to query."""

    schema_metadata_table: str = "schema_metadata"
    """Metadata table holding the ``schema_json`` document per table."""

    interaction_log_table: str = "chat_logs"
    """Table receiving best-effort question/query/answer log rows."""

    enable_interaction_logging: bool = False
    """Insert a log row after each answered turn."""

    # -- Generation policy -------------------------------------------------

    lookup_mode: Literal["parameters", "sql"] = "parameters"
    """How specific-flight lookups are generated: stored call or free SQL."""

    include_sample_row: bool = False
    """Include the metadata sample row in generation prompts."""

    # -- Thresholds / Tuning -----------------------------------------------

    clarification_max_options: int = 10
    """Maximum number of date options offered during clarification."""

    max_table_rows: int = 25
    """Row cap when rendering a full result table for continuations."""

    summary_full_list_threshold: int = 5
    """Above this many rows the summary offers to show the full list."""

    history_max_turns: int = 20
    """Only the most recent turns are rendered into prompts."""

    # -- Operational -------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    """Origins allowed by the CORS middleware."""


def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Uses ``lru_cache`` semantics via a module-level singleton so the
    ``.env`` file is read at most once per process.

    Returns:
        The global ``Settings`` object.
    """
    return _settings


_settings = Settings()
