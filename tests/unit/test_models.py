"""Unit tests for request/response and schema models."""

from __future__ import annotations

import pytest
from models import (
    AgentResponse,
    ChatRequest,
    ExtractedParameters,
    QueryResult,
    SchemaDescriptor,
    SearchParams,
)


class TestSchemaDescriptorFromMetadata:
    def test_columns_document(self) -> None:
        schema = SchemaDescriptor.from_metadata(
            "flight_schedule",
            {"columns": [{"name": "gate_name", "type": "VARCHAR"}, {"name": "delay_duration", "data_type": "INTERVAL"}]},
        )

        assert [c.type for c in schema.columns] == ["VARCHAR", "INTERVAL"]

    def test_json_string_mapping(self) -> None:
        schema = SchemaDescriptor.from_metadata("flight_schedule", '{"Gate_Name": "VARCHAR"}')

        assert schema.has_column("gate_name")

    def test_list_of_names(self) -> None:
        schema = SchemaDescriptor.from_metadata("flight_schedule", ["gate_name", "terminal_name"])

        assert schema.column_names == {"gate_name", "terminal_name"}

    @pytest.mark.parametrize("doc", [{}, [], {"columns": [{"type": "VARCHAR"}]}])
    def test_no_columns(self, doc: object) -> None:
        with pytest.raises(ValueError):
            SchemaDescriptor.from_metadata("flight_schedule", doc)

    def test_sample_row_only_on_request(self) -> None:
        schema = SchemaDescriptor.from_metadata(
            "flight_schedule", {"columns": ["gate_name"], "sampleRow": {"gate_name": "D12"}}
        )

        assert "D12" not in schema.to_prompt_text()
        assert "D12" in schema.to_prompt_text(include_sample_row=True)


class TestWireModels:
    def test_request_accepts_client_names(self) -> None:
        request = ChatRequest.model_validate(
            {
                "user_query": "hi",
                "history": [{"sender": "bot", "text": "Pick one", "followUpOptions": ["2024-07-12"]}],
                "searchParams": {"flightNumber": "2490"},
            }
        )

        assert request.history[0].follow_up_options == ["2024-07-12"]
        assert request.search_params == SearchParams(flight_number="2490")

    def test_empty_search_params(self) -> None:
        assert SearchParams(airline_code="", flight_number=None).is_empty()

    def test_response_defaults(self) -> None:
        dumped = AgentResponse(response="ok").model_dump(by_alias=True)

        assert dumped == {
            "response": "ok",
            "generatedSql": None,
            "suggestions": [],
            "requiresFollowUp": False,
            "followUpOptions": [],
        }

    def test_describe_parameters(self) -> None:
        assert ExtractedParameters(airline_code="BA", flight_number="2490", origin_date="2024-07-12").describe() == (
            "BA2490 on 2024-07-12"
        )
        assert ExtractedParameters().describe() == "any flight"


class TestQueryResult:
    def test_empty_is_not_failure(self) -> None:
        result = QueryResult.from_rows([])

        assert result.success and result.is_empty

    def test_failure_is_not_empty(self) -> None:
        result = QueryResult.failure("boom")

        assert not result.success and not result.is_empty
