"""
Text-completion client backed by a Foundry ``ChatAgent``.

Every oracle call in the assistant goes through ``complete()``: one
prompt in, raw text out. No thread is kept between calls because the
conversation history is rendered into each prompt.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from entities.shared.errors import OracleError

if TYPE_CHECKING:
    from agent_framework import ChatAgent
    from agent_framework_azure_ai import AzureAIClient

logger = logging.getLogger(__name__)


def load_prompt() -> str:
    """Load the oracle system prompt from prompt.md in this folder."""
    return (Path(__file__).parent / "prompt.md").read_text(encoding="utf-8")


def create_completion_agent(client: AzureAIClient, instructions: str) -> ChatAgent:
    """Create the ChatAgent used for all completions.

    Args:
        client: Azure AI client for LLM access.
        instructions: Agent system prompt text.

    Returns:
        Configured ChatAgent with no tools.
    """
    from agent_framework import ChatAgent  # noqa: PLC0415

    return ChatAgent(
        name="flight-assistant-agent",
        instructions=instructions,
        chat_client=client,
    )


class AgentCompletionClient:
    """``CompletionClient`` that forwards each prompt to a ``ChatAgent``.

    Args:
        agent: Pre-configured ChatAgent.
    """

    def __init__(self, agent: ChatAgent) -> None:
        self._agent = agent

    async def complete(self, prompt: str) -> str:
        logger.debug("Oracle prompt: %s", prompt[:200])
        try:
            result = await self._agent.run(prompt)
        except Exception as exc:
            logger.exception("Oracle call failed")
            raise OracleError(str(exc)) from exc

        text = (result.text or "").strip()
        if not text:
            raise OracleError("Oracle returned an empty response")

        logger.debug("Oracle response: %s", text[:200])
        return text
