"""
Query execution and results models.

These models represent rows returned by the data store.
"""

from typing import Any

from pydantic import BaseModel, Field


class QueryResult(BaseModel):
    """Materialized result of one data-store round trip.

    ``success=True`` with no rows is a normal outcome (nothing found),
    distinct from ``success=False`` (execution error).
    """

    success: bool = Field(default=True, description="Whether the call succeeded")

    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="List of row dictionaries, in result order"
    )

    columns: list[str] = Field(
        default_factory=list, description="Column names from the result set"
    )

    error: str | None = Field(default=None, description="Error message if the call failed")

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return self.success and not self.rows

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]] | None) -> "QueryResult":
        """Build a successful result, deriving columns from the first row."""
        rows = list(rows or [])
        columns = list(rows[0].keys()) if rows else []
        return cls(success=True, rows=rows, columns=columns)

    @classmethod
    def failure(cls, error: str) -> "QueryResult":
        return cls(success=False, error=error)
