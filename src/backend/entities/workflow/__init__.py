"""
Client wiring for the flight assistant.

``AgentClients`` / ``create_agent_clients`` provide dependency injection
for every step of ``FlightAssistant``.
"""

from .clients import AgentClients, create_agent_clients

__all__ = [
    "AgentClients",
    "create_agent_clients",
]
