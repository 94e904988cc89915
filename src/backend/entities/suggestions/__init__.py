"""Suggestions package for follow-up question chips."""

from .generator import MAX_SUGGESTIONS, SuggestionGenerator, parse_suggestions

__all__ = ["MAX_SUGGESTIONS", "SuggestionGenerator", "parse_suggestions"]
