"""Query Generator package for producing lookup parameters or SQL."""

from .generator import (
    GenerationMode,
    QueryGenerator,
    interpret_generation_output,
    resolve_date,
    rewrite_fuzzy_equality,
)

__all__ = [
    "GenerationMode",
    "QueryGenerator",
    "interpret_generation_output",
    "resolve_date",
    "rewrite_fuzzy_equality",
]
