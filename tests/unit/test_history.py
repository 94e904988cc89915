"""Unit tests for conversation history helpers."""

from entities.shared.history import (
    EMPTY_HISTORY_TEXT,
    bot_asked_for_date,
    established_flight_identity,
    find_flight_identity,
    format_history,
    last_bot_turn,
    last_generated_query,
)
from models import Turn


def _user(text: str) -> Turn:
    return Turn(sender="user", text=text)


def _bot(text: str, **kwargs) -> Turn:
    return Turn(sender="bot", text=text, **kwargs)


# ── format_history ──────────────────────────────────────────────────────


class TestFormatHistory:
    def test_empty_history(self) -> None:
        assert format_history([]) == EMPTY_HISTORY_TEXT

    def test_speaker_labels(self) -> None:
        text = format_history([_user("hi"), _bot("Hello!")])

        assert text == "User: hi\nAssistant: Hello!"

    def test_max_turns_keeps_most_recent(self) -> None:
        history = [_user("one"), _bot("two"), _user("three")]

        assert format_history(history, max_turns=2) == "Assistant: two\nUser: three"


# ── last_bot_turn / last_generated_query ────────────────────────────────


class TestLastBotTurn:
    def test_finds_latest_bot_turn(self) -> None:
        history = [_bot("first"), _user("q"), _bot("second"), _user("q2")]

        assert last_bot_turn(history).text == "second"

    def test_none_without_bot_turns(self) -> None:
        assert last_bot_turn([_user("q")]) is None

    def test_last_generated_query_reads_last_bot_turn(self) -> None:
        history = [
            _user("q"),
            _bot("Found 12 flights.", generated_query="SELECT 1 FROM flight_schedule"),
        ]

        assert last_generated_query(history) == "SELECT 1 FROM flight_schedule"

    def test_last_generated_query_ignores_older_turns(self) -> None:
        history = [
            _bot("Found 12 flights.", generated_query="SELECT 1 FROM flight_schedule"),
            _user("thanks"),
            _bot("You're welcome!"),
        ]

        assert last_generated_query(history) is None

    def test_last_generated_query_none(self) -> None:
        assert last_generated_query([_bot("Hello!")]) is None


# ── find_flight_identity ────────────────────────────────────────────────


class TestFindFlightIdentity:
    def test_attached_designator(self) -> None:
        identity = find_flight_identity("What is the status of flight AA123 on 2024-08-15?")

        assert identity.airline_code == "AA"
        assert identity.flight_number == "123"

    def test_lowercase_designator_uppercased(self) -> None:
        identity = find_flight_identity("where is ba2490")

        assert identity.airline_code == "BA"
        assert identity.flight_number == "2490"

    def test_alphanumeric_airline_code(self) -> None:
        assert find_flight_identity("B61234 status").airline_code == "B6"

    def test_spaced_designator(self) -> None:
        identity = find_flight_identity("Is BA 2490 late?")

        assert (identity.airline_code, identity.flight_number) == ("BA", "2490")

    def test_bare_flight_number(self) -> None:
        identity = find_flight_identity("Is flight 131 regularly late?")

        assert identity.airline_code is None
        assert identity.flight_number == "131"

    def test_date_is_not_a_flight(self) -> None:
        assert not find_flight_identity("2024-07-12").is_known()

    def test_no_flight(self) -> None:
        assert not find_flight_identity("How many flights are delayed today?").is_known()

    def test_gate_is_not_a_flight(self) -> None:
        assert not find_flight_identity("Is gate D12 open?").is_known()

    def test_location_names_skipped(self) -> None:
        assert not find_flight_identity("Is stand AB12 free?").is_known()
        assert not find_flight_identity("Bags on carousel #BA12").is_known()

    def test_flight_after_location_name(self) -> None:
        identity = find_flight_identity("Which gate does AB12 leave from, gate C4?")

        assert (identity.airline_code, identity.flight_number) == ("AB", "12")

    def test_aircraft_type_is_not_a_flight(self) -> None:
        assert not find_flight_identity("Is it an A320?").is_known()


class TestEstablishedFlightIdentity:
    def test_user_turn_preferred(self) -> None:
        history = [
            _user("What's the status of BA2490?"),
            _bot("Which date are you interested in for flight BA2490?"),
        ]

        identity = established_flight_identity(history)

        assert (identity.airline_code, identity.flight_number) == ("BA", "2490")

    def test_most_recent_user_flight_wins(self) -> None:
        history = [_user("Tell me about AA100"), _bot("..."), _user("and DL200?")]

        assert established_flight_identity(history).flight_number == "200"

    def test_falls_back_to_bot_turns(self) -> None:
        history = [_user("and tomorrow?"), _bot("Flight UA55 departs at 10:00.")]

        assert established_flight_identity(history).flight_number == "55"

    def test_gate_question_keeps_flight(self) -> None:
        history = [
            _user("What is the status of BA2490 today?"),
            _bot("Flight BA2490 departed at 10:05."),
            _user("Is gate D12 open?"),
        ]

        identity = established_flight_identity(history)

        assert (identity.airline_code, identity.flight_number) == ("BA", "2490")

    def test_empty(self) -> None:
        assert not established_flight_identity([]).is_known()


# ── bot_asked_for_date ──────────────────────────────────────────────────


class TestBotAskedForDate:
    def test_date_question(self) -> None:
        assert bot_asked_for_date(_bot("Which date are you interested in?"))

    def test_date_options(self) -> None:
        turn = _bot("Pick one", follow_up_options=["2024-07-12", "2024-07-11"])

        assert bot_asked_for_date(turn)

    def test_ordinary_answer(self) -> None:
        assert not bot_asked_for_date(_bot("Flight BA2490 departed on time."))

    def test_user_turn(self) -> None:
        assert not bot_asked_for_date(_user("Which date?"))

    def test_none(self) -> None:
        assert not bot_asked_for_date(None)

    def test_word_containing_date_is_not_a_question(self) -> None:
        turn = _bot("Its departure time was updated to 10:05. Anything else I can help with?")

        assert not bot_asked_for_date(turn)

    def test_date_outside_a_question(self) -> None:
        assert not bot_asked_for_date(_bot("The date was 2024-07-12. Need anything else?"))
