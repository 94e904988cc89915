"""
Intent and query generation models.

The oracle returns free text; every call site coerces it into one of the
shapes below. ``GenerationResult`` is a tagged union so routing code can
branch on ``kind`` exhaustively.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class Intent(str, Enum):
    """Closed set of turn intents."""

    SPECIFIC_LOOKUP = "SPECIFIC_LOOKUP"
    ANALYTICAL_QUERY = "ANALYTICAL_QUERY"
    ANALYTICAL_CONTINUATION = "ANALYTICAL_CONTINUATION"
    GENERAL_CONVERSATION = "GENERAL_CONVERSATION"


class ExtractedParameters(BaseModel):
    """Typed arguments for the parameterized ``lookup_flight_info`` call."""

    model_config = ConfigDict(populate_by_name=True)

    airline_code: str | None = Field(default=None, alias="airlineCode")
    flight_number: str | None = Field(default=None, alias="flightNumber")
    origin_date: str | None = Field(
        default=None, alias="originDate", description="YYYY-MM-DD"
    )
    requires_clarification: bool = Field(default=False, alias="requiresClarification")
    missing_parameter: Literal["date"] | None = Field(default=None, alias="missingParameter")

    def describe(self) -> str:
        """Human-readable rendering, e.g. ``BA2490 on 2024-07-12``."""
        flight = f"{self.airline_code or ''}{self.flight_number or ''}" or "any flight"
        return f"{flight} on {self.origin_date}" if self.origin_date else flight


class FlightIdentity(BaseModel):
    """Airline/flight fragment known when a clarification is requested."""

    airline_code: str | None = None
    flight_number: str | None = None

    def is_known(self) -> bool:
        return bool(self.flight_number)


class ParametersResult(BaseModel):
    """Generator produced a complete parameter set (structured mode)."""

    kind: Literal["parameters"] = "parameters"
    value: ExtractedParameters


class RawQueryResult(BaseModel):
    """Generator produced a SELECT statement (free SQL mode)."""

    kind: Literal["sql"] = "sql"
    sql: str


class NeedsClarificationResult(BaseModel):
    """Generator needs one more parameter from the user before proceeding."""

    kind: Literal["needs_clarification"] = "needs_clarification"
    missing: Literal["date"] = "date"
    identity: FlightIdentity = Field(default_factory=FlightIdentity)


GenerationResult = Annotated[
    ParametersResult | RawQueryResult | NeedsClarificationResult,
    Field(discriminator="kind"),
]


class SQLDraft(BaseModel):
    """
    A SQL statement on its way to execution.

    Produced by the generator (or taken verbatim from history for
    continuations) and annotated by the query validator.
    """

    completed_sql: str | None = Field(default=None, description="The SQL to validate")

    user_query: str = Field(default="", description="The original user question")

    query_validated: bool = Field(
        default=False, description="Whether the SQL query has been validated"
    )
    query_violations: list[str] = Field(
        default_factory=list, description="Blocking validation failures"
    )
    query_warnings: list[str] = Field(
        default_factory=list, description="Non-blocking validation warnings"
    )

    @property
    def is_valid(self) -> bool:
        return self.query_validated and not self.query_violations
