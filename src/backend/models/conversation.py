"""
Chat request/response models.

The chat client owns the conversation history and sends it by value on
every turn. Wire names follow the client (``user_query`` in, camelCase
out), Python attributes are snake_case.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Turn(BaseModel):
    """A single message in the client-held conversation history."""

    model_config = ConfigDict(populate_by_name=True)

    sender: Literal["user", "bot"] = Field(description="Who produced the message")
    text: str = Field(default="", description="Message text as shown in the chat")
    generated_query: str | None = Field(
        default=None,
        alias="generatedQuery",
        description="SQL the bot generated for this turn (bot turns only)",
    )
    follow_up_options: list[str] | None = Field(
        default=None,
        alias="followUpOptions",
        description="Options the bot offered for the user to pick from",
    )


class SearchParams(BaseModel):
    """Structured flight-search form values; bypasses intent classification."""

    model_config = ConfigDict(populate_by_name=True)

    airline_code: str | None = Field(default=None, alias="airlineCode")
    flight_number: str | None = Field(default=None, alias="flightNumber")
    date: str | None = Field(default=None, description="Origin date (YYYY-MM-DD)")

    def is_empty(self) -> bool:
        """True when no search field carries a value."""
        return not any((self.airline_code, self.flight_number, self.date))


class ChatRequest(BaseModel):
    """One user turn sent by the chat client."""

    model_config = ConfigDict(populate_by_name=True)

    user_query: str = Field(default="", description="The user's latest message")
    history: list[Turn] = Field(
        default_factory=list, description="Prior turns, oldest first"
    )
    search_params: SearchParams | None = Field(default=None, alias="searchParams")


class AgentResponse(BaseModel):
    """Response returned to the chat client for one turn."""

    model_config = ConfigDict(populate_by_name=True)

    response: str = Field(description="Natural-language answer shown to the user")
    generated_sql: str | None = Field(
        default=None,
        alias="generatedSql",
        description="The SQL executed for this turn, if any",
    )
    suggestions: list[str] = Field(
        default_factory=list, description="Follow-up questions rendered as chips"
    )
    requires_follow_up: bool = Field(
        default=False,
        alias="requiresFollowUp",
        description="Whether the user must pick one of follow_up_options",
    )
    follow_up_options: list[str] = Field(
        default_factory=list,
        alias="followUpOptions",
        description="Disambiguation choices (e.g. available dates)",
    )
