"""Summarizer package for turning result rows into answers."""

from .summarizer import (
    FULL_LIST_OFFER,
    NOT_AVAILABLE,
    ResultSummarizer,
    prepare_rows,
    render_table,
)

__all__ = [
    "FULL_LIST_OFFER",
    "NOT_AVAILABLE",
    "ResultSummarizer",
    "prepare_rows",
    "render_table",
]
