"""FlightAssistant: routes one chat turn through the agent steps.

The assistant is stateless: everything it knows about the conversation
arrives in the request's history. It classifies the turn, generates a
lookup (or asks for a missing date), executes it, and turns the rows
into an answer with follow-up suggestions.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path
from typing import TypeVar

from config.settings import Settings
from entities.clarification import ClarificationResolver
from entities.intent_classifier import IntentClassifier
from entities.query_generator import QueryGenerator, resolve_date
from entities.query_validator import validate_sql
from entities.shared import error_recovery
from entities.shared.errors import (
    OracleError,
    QueryExecutionError,
    QueryGenerationError,
    SchemaUnavailableError,
    SummarizationError,
)
from entities.shared.history import (
    bot_asked_for_date,
    format_history,
    last_bot_turn,
    last_generated_query,
)
from entities.summarizer import ResultSummarizer, render_table
from entities.suggestions import SuggestionGenerator
from entities.workflow.clients import AgentClients
from models import (
    AgentResponse,
    ChatRequest,
    ExtractedParameters,
    FlightIdentity,
    Intent,
    NeedsClarificationResult,
    ParametersResult,
    QueryResult,
    SchemaDescriptor,
    SearchParams,
    Turn,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def load_assistant_prompt() -> str:
    """Load the FlightAssistant persona prompt."""
    prompt_path = Path(__file__).parent / "assistant_prompt.md"
    if not prompt_path.exists():
        raise FileNotFoundError(f"Prompt not found: {prompt_path}")
    return prompt_path.read_text(encoding="utf-8")


def describe_lookup(params: ExtractedParameters) -> str:
    """Render a stored lookup call for user-facing messages and logs."""

    def _arg(value: str | None) -> str:
        return f"'{value}'" if value else "NULL"

    return (
        f"lookup_flight_info(p_airline_code => {_arg(params.airline_code)}, "
        f"p_flight_number => {_arg(params.flight_number)}, "
        f"p_origin_date => {_arg(params.origin_date)})"
    )


def _flight_label(identity: FlightIdentity) -> str:
    return f"{identity.airline_code or ''}{identity.flight_number or ''}"


class FlightAssistant:
    """Routes chat turns to the classifier, generator, store and summarizer.

    Responsibilities:
    1. Send structured search-form requests straight to the stored lookup
    2. Classify free-text turns into one of four intents
    3. Answer general conversation without touching the data store
    4. Re-run the previous query for continuation turns
    5. Generate, clarify, execute and summarize data questions
    """

    def __init__(
        self,
        clients: AgentClients,
        settings: Settings,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the FlightAssistant.

        Args:
            clients: I/O dependencies (oracle, metadata store, data store).
            settings: Application configuration.
            today: Callable returning the server date; injectable for tests.
        """
        self.clients = clients
        self.settings = settings
        self._reporter = clients.reporter
        self._persona = load_assistant_prompt()
        self._today = today
        self._background_tasks: set[asyncio.Task[None]] = set()

        max_turns = settings.history_max_turns
        self.classifier = IntentClassifier(clients.completion, max_turns)
        self.generator = QueryGenerator(
            clients.completion,
            clients.allowed_tables,
            history_max_turns=max_turns,
            include_sample_row=settings.include_sample_row,
            today=today,
        )
        self.resolver = ClarificationResolver(
            clients.store, settings.flight_table, settings.clarification_max_options
        )
        self.summarizer = ResultSummarizer(clients.completion, max_turns)
        self.suggester = SuggestionGenerator(clients.completion, max_turns)

        logger.info("FlightAssistant initialized (lookup_mode=%s)", settings.lookup_mode)

    async def handle(self, request: ChatRequest) -> AgentResponse:
        """Answer one user turn.

        Recoverable failures become fixed apology messages; only
        unexpected exceptions propagate to the HTTP boundary.
        """
        question = request.user_query.strip()
        history = request.history

        if request.search_params is not None and not request.search_params.is_empty():
            logger.info("Structured search: %s", request.search_params.model_dump())
            response = await self._handle_search_form(question, request.search_params, history)
        else:
            intent = await self._step(
                "intent_classification", self.classifier.classify(history, question)
            )
            if self._answers_date_question(intent, question, history):
                logger.info("Date supplied after a date question, routing %s as lookup", intent.value)
                intent = Intent.SPECIFIC_LOOKUP
            response = await self._route(intent, question, history)

        self._schedule_log(question, response)
        return response

    async def wait_for_background_tasks(self) -> None:
        """Wait for pending interaction-log writes (used on shutdown)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)

    def _answers_date_question(self, intent: Intent, question: str, history: list[Turn]) -> bool:
        """True if a turn the classifier did not route to data answers our date question."""
        if intent in (Intent.SPECIFIC_LOOKUP, Intent.ANALYTICAL_QUERY):
            return False
        if not bot_asked_for_date(last_bot_turn(history)):
            return False
        return resolve_date(question, self._today()) is not None

    async def _route(self, intent: Intent, question: str, history: list[Turn]) -> AgentResponse:
        if intent == Intent.GENERAL_CONVERSATION:
            return await self._handle_conversation(question, history)

        if intent == Intent.ANALYTICAL_CONTINUATION:
            stored_query = last_generated_query(history)
            if stored_query:
                return await self._handle_continuation(stored_query)
            logger.info("Continuation without a stored query, regenerating")
            intent = Intent.ANALYTICAL_QUERY

        return await self._handle_data_question(intent, question, history)

    # -- conversation --

    async def _handle_conversation(self, question: str, history: list[Turn]) -> AgentResponse:
        prompt = f"""{self._persona}

**Conversation History:**
{format_history(history, self.settings.history_max_turns)}

**User's Latest Message:** "{question}"

**Your Response:**"""
        try:
            reply = await self._step("conversation", self.clients.completion.complete(prompt))
        except OracleError as exc:
            logger.warning("Conversation reply failed: %s", exc)
            return AgentResponse(response=error_recovery.GENERIC_APOLOGY)
        return AgentResponse(response=reply)

    # -- continuation --

    async def _handle_continuation(self, stored_query: str) -> AgentResponse:
        """Re-run the previous turn's query verbatim and show every row."""
        draft = validate_sql(stored_query, self.clients.allowed_tables)
        if not draft.is_valid:
            logger.warning("Stored query failed validation: %s", draft.query_violations)
            return AgentResponse(
                response=error_recovery.build_rephrase_message(draft.query_violations)
            )

        result = await self._step("sql_execution", self.clients.store.execute_query(stored_query))
        failure = self._empty_or_failed(result, stored_query, generated_sql=stored_query)
        if failure is not None:
            return failure

        table = render_table(result.rows, result.columns, self.settings.max_table_rows)
        return AgentResponse(response=table, generated_sql=stored_query)

    # -- structured search form --

    async def _handle_search_form(
        self, question: str, search: SearchParams, history: list[Turn]
    ) -> AgentResponse:
        params = ExtractedParameters(
            airline_code=search.airline_code.strip().upper() if search.airline_code else None,
            flight_number=search.flight_number.strip() if search.flight_number else None,
            origin_date=search.date,
        )
        result = await self._step("flight_lookup", self._lookup(params))
        call = describe_lookup(params)

        failure = self._empty_or_failed(result, call, generated_sql=None)
        if failure is not None:
            return failure

        schema = await self._optional_schema()
        return await self._answer(
            question or f"Tell me about flight {params.describe()}",
            result,
            history,
            schema,
            generated_sql=None,
        )

    # -- data questions --

    async def _handle_data_question(
        self, intent: Intent, question: str, history: list[Turn]
    ) -> AgentResponse:
        try:
            schema = await self._step(
                "schema_fetch", self.clients.schema_provider.get_schema(self.settings.flight_table)
            )
        except SchemaUnavailableError as exc:
            logger.error("Schema unavailable: %s", exc)
            return AgentResponse(response=error_recovery.KNOWLEDGE_BASE_UNAVAILABLE)

        mode = "sql" if intent == Intent.ANALYTICAL_QUERY else self.settings.lookup_mode
        try:
            generated = await self._step(
                "query_generation", self.generator.generate(history, question, schema, mode)
            )
        except QueryGenerationError as exc:
            logger.warning("Query generation failed: %s", exc)
            return AgentResponse(response=error_recovery.build_rephrase_message(exc.violations))
        except OracleError as exc:
            logger.warning("Query generation oracle call failed: %s", exc)
            return AgentResponse(response=error_recovery.GENERIC_APOLOGY)

        if isinstance(generated, NeedsClarificationResult):
            return await self._clarify(generated.identity)

        if isinstance(generated, ParametersResult):
            generated_sql = None
            call = describe_lookup(generated.value)
            result = await self._step("flight_lookup", self._lookup(generated.value))
        else:
            generated_sql = generated.sql
            call = generated.sql
            result = await self._step("sql_execution", self.clients.store.execute_query(generated.sql))

        failure = self._empty_or_failed(result, call, generated_sql)
        if failure is not None:
            return failure

        offer_full_list = (
            intent == Intent.ANALYTICAL_QUERY
            and generated_sql is not None
            and result.row_count > self.settings.summary_full_list_threshold
        )
        return await self._answer(
            question, result, history, schema, generated_sql, offer_full_list=offer_full_list
        )

    async def _clarify(self, identity: FlightIdentity) -> AgentResponse:
        """Offer the dates on which the flight has records."""
        if not identity.is_known():
            return AgentResponse(response=error_recovery.REPHRASE_REQUEST)

        try:
            options = await self._step("clarification", self.resolver.resolve_options(identity))
        except QueryExecutionError as exc:
            logger.error("Date options lookup failed: %s", exc)
            return AgentResponse(response=error_recovery.database_error_message(exc.query))

        flight = _flight_label(identity)
        if not options:
            return AgentResponse(response=error_recovery.no_date_options_message(flight))

        return AgentResponse(
            response=error_recovery.date_question(flight),
            requires_follow_up=True,
            follow_up_options=options,
        )

    # -- shared steps --

    async def _lookup(self, params: ExtractedParameters) -> QueryResult:
        return await self.clients.store.lookup_flight_info(
            airline_code=params.airline_code,
            flight_number=params.flight_number,
            origin_date=params.origin_date,
        )

    @staticmethod
    def _empty_or_failed(
        result: QueryResult, call: str, generated_sql: str | None
    ) -> AgentResponse | None:
        """Return the fixed reply for a failed or empty result, else ``None``."""
        if not result.success:
            logger.error("Query execution failed: %s", result.error)
            return AgentResponse(
                response=error_recovery.database_error_message(call),
                generated_sql=generated_sql,
            )
        if result.is_empty:
            logger.info("Query returned no rows")
            return AgentResponse(
                response=error_recovery.no_results_message(call),
                generated_sql=generated_sql,
            )
        return None

    async def _answer(
        self,
        question: str,
        result: QueryResult,
        history: list[Turn],
        schema: SchemaDescriptor | None,
        generated_sql: str | None,
        offer_full_list: bool = False,
    ) -> AgentResponse:
        """Summarize a non-empty result and attach suggestions."""
        try:
            summary = await self._step(
                "response_summarization",
                self.summarizer.summarize(question, result.rows, history, offer_full_list),
            )
        except SummarizationError as exc:
            logger.warning("Summarization failed: %s", exc)
            return AgentResponse(
                response=error_recovery.COULD_NOT_PHRASE_ANSWER, generated_sql=generated_sql
            )

        suggestions: list[str] = []
        if schema is not None:
            suggestions = await self._step(
                "suggestion_generation",
                self.suggester.suggest(question, summary, result.rows, schema, history),
            )

        return AgentResponse(response=summary, generated_sql=generated_sql, suggestions=suggestions)

    async def _optional_schema(self) -> SchemaDescriptor | None:
        try:
            return await self.clients.schema_provider.get_schema(self.settings.flight_table)
        except SchemaUnavailableError as exc:
            logger.warning("Schema unavailable, skipping suggestions: %s", exc)
            return None

    async def _step(self, name: str, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* between reporter start/end events."""
        self._reporter.step_start(name)
        try:
            return await awaitable
        finally:
            self._reporter.step_end(name)

    def _schedule_log(self, question: str, response: AgentResponse) -> None:
        """Write the interaction log off the response path."""
        if self.clients.interaction_logger is None:
            return
        task = asyncio.create_task(self._log_interaction(question, response))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _log_interaction(self, question: str, response: AgentResponse) -> None:
        interaction_logger = self.clients.interaction_logger
        if interaction_logger is None:
            return
        try:
            await interaction_logger.log_interaction(
                question, response.generated_sql, response.response
            )
        except Exception:
            logger.warning("Interaction log write failed", exc_info=True)
