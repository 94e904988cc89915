"""Query Validator package for validating SQL queries before execution."""

from .validator import validate_query, validate_sql

__all__ = ["validate_query", "validate_sql"]
