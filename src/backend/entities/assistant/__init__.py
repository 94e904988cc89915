"""Flight Assistant - routes each chat turn through the agent steps."""

from .assistant import FlightAssistant, describe_lookup, load_assistant_prompt

__all__ = ["FlightAssistant", "describe_lookup", "load_assistant_prompt"]
