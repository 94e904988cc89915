"""Clarification package for resolving the options offered to the user."""

from .resolver import ClarificationResolver, build_date_options_query

__all__ = ["ClarificationResolver", "build_date_options_query"]
