"""Integration tests for a multi-turn flight conversation.

These tests drive FlightAssistant through the real Supabase adapters,
validator, generator, resolver and summarizer, mocking only the external
services (the Supabase client and the oracle). The client-held history
is rebuilt from each response exactly as the chat UI does it.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

from config.settings import Settings
from entities.assistant import FlightAssistant
from entities.shared.clients import SupabaseFlightStore, SupabaseSchemaProvider
from entities.summarizer import FULL_LIST_OFFER
from entities.workflow import AgentClients
from models import AgentResponse, ChatRequest, Turn

from tests.conftest import FLIGHT_COLUMNS, TODAY, FakeCompletionClient

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

DELAYED_SQL = (
    "SELECT flight_number, delay_duration FROM flight_schedule "
    "WHERE delay_duration > INTERVAL '0 minutes' AND origin_date_time::date = '2024-07-12' LIMIT 50"
)

BA2490_ROW: dict[str, Any] = {
    "airline_code": "BA",
    "flight_number": "2490",
    "actual_departure_time": "2024-07-12T10:05:00",
    "gate_name": "D12",
    "terminal_name": None,
}

DELAYED_ROWS = [{"flight_number": str(100 + n), "delay_duration": "00:20:00"} for n in range(7)]


def _rpc(name: str, params: dict[str, Any]) -> MagicMock:
    if name == "lookup_flight_info":
        data: Any = [BA2490_ROW] if params["p_origin_date"] == "2024-07-12" else []
    elif "DISTINCT origin_date_time::date" in params["query_text"]:
        data = [{"origin_date": "2024-07-11"}, {"origin_date": "2024-07-12"}]
    else:
        data = DELAYED_ROWS
    return MagicMock(execute=AsyncMock(return_value=MagicMock(data=data)))


def _supabase() -> MagicMock:
    client = MagicMock()
    client.rpc.side_effect = _rpc
    doc = {"columns": [{"name": name, "type": col_type} for name, col_type in FLIGHT_COLUMNS]}
    chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    chain.execute = AsyncMock(return_value=MagicMock(data=[{"schema_json": doc}]))
    return client


def _assistant(supabase: MagicMock, completion: FakeCompletionClient, settings: Settings) -> FlightAssistant:
    allowed = frozenset({"flight_schedule"})
    clients = AgentClients(
        completion=completion,
        schema_provider=SupabaseSchemaProvider(supabase, "schema_metadata"),
        store=SupabaseFlightStore(supabase, allowed),
        allowed_tables=allowed,
    )
    return FlightAssistant(clients, settings, today=lambda: TODAY)


def _record(history: list[Turn], question: str, response: AgentResponse) -> None:
    history.append(Turn(sender="user", text=question))
    history.append(
        Turn(
            sender="bot",
            text=response.response,
            generated_query=response.generated_sql,
            follow_up_options=response.follow_up_options or None,
        )
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestDateClarificationRoundTrip:
    async def test_question_then_answer(self, test_settings: Settings) -> None:
        supabase = _supabase()
        completion = FakeCompletionClient(
            [
                "SPECIFIC_LOOKUP",
                '{"requiresClarification": true, "missingParameter": "date", '
                '"airlineCode": "BA", "flightNumber": "2490"}',
                "SPECIFIC_LOOKUP",
                '{"requiresClarification": true, "missingParameter": "date"}',
                "Flight BA2490 departed at 10:05 from gate D12. The terminal is not available.",
                '["Was it delayed?", "When did it arrive?"]',
            ]
        )
        assistant = _assistant(supabase, completion, test_settings)
        history: list[Turn] = []

        first = await assistant.handle(ChatRequest(user_query="What's the status of BA2490?"))
        _record(history, "What's the status of BA2490?", first)

        assert first.requires_follow_up is True
        assert first.follow_up_options == ["2024-07-12", "2024-07-11"]

        second = await assistant.handle(ChatRequest(user_query="2024-07-12", history=history))

        assert second.requires_follow_up is False
        assert second.response.startswith("Flight BA2490 departed at 10:05")
        assert second.suggestions == ["Was it delayed?", "When did it arrive?"]
        lookup_calls = [c for c in supabase.rpc.call_args_list if c.args[0] == "lookup_flight_info"]
        assert [c.args[1] for c in lookup_calls] == [
            {"p_airline_code": "BA", "p_flight_number": "2490", "p_origin_date": "2024-07-12"}
        ]
        assert '"terminal_name": "not available"' in completion.prompts[4]


class TestAnalyticalThenContinuation:
    async def test_full_list_offer_accepted(self, test_settings: Settings) -> None:
        supabase = _supabase()
        completion = FakeCompletionClient(
            [
                "ANALYTICAL_QUERY",
                DELAYED_SQL,
                "Seven flights were delayed on July 12, each by about 20 minutes.",
                "[]",
                "ANALYTICAL_CONTINUATION",
            ]
        )
        assistant = _assistant(supabase, completion, test_settings)
        history: list[Turn] = []
        question = "Which flights were delayed on 2024-07-12?"

        first = await assistant.handle(ChatRequest(user_query=question))
        _record(history, question, first)

        assert first.generated_sql == DELAYED_SQL
        assert first.response.endswith(FULL_LIST_OFFER)

        second = await assistant.handle(ChatRequest(user_query="yes", history=history))

        assert second.generated_sql == DELAYED_SQL
        assert second.response.startswith("Here is the full list (7 rows):")
        assert "| 106 | 00:20:00 |" in second.response
        executed = [c.args[1]["query_text"] for c in supabase.rpc.call_args_list]
        assert executed == [DELAYED_SQL, DELAYED_SQL]
        # the continuation never asked the oracle for a new query
        assert len(completion.prompts) == 5
