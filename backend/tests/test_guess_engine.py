from __future__ import annotations

import pytest

from app.card_catalog import CardCatalog
from app.runtime_errors import InsufficientCards
from app.runtime_guess_flow import (
    advance_guess_question,
    guess_standings,
    start_guess_countdown,
    start_guess_session,
    submit_guess,
)
from app.runtime_lifecycle import create_room, join_room
from app.runtime_types import GuessRoom, GuessSettings, Player
from conftest import GUEST, HOST


def _put_card_first(room: GuessRoom, card_id: str) -> None:
    ids = [cid for cid in room.used_card_ids if cid != card_id]
    room.used_card_ids = [card_id] + ids[: len(room.used_card_ids) - 1]


def test_countdown_is_advisory(guess_room: GuessRoom) -> None:
    start_guess_countdown(guess_room)
    assert guess_room.guess_countdown_started_at is not None
    assert guess_room.status == "lobby"


def test_session_draws_distinct_cards(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    join_room(guess_room, GUEST)
    guess_room.players[1].score = 4
    start_guess_countdown(guess_room)

    start_guess_session(guess_room, catalog)

    assert guess_room.status == "inGame"
    assert len(guess_room.used_card_ids) == 5
    assert len(set(guess_room.used_card_ids)) == 5
    assert all(card_id.startswith("tools-") for card_id in guess_room.used_card_ids)
    assert guess_room.current_question_index == 0
    assert guess_room.guess_per_question_sec == 30
    assert guess_room.guess_started_at is not None
    assert guess_room.guess_countdown_started_at is None
    assert [player.score for player in guess_room.players] == [0, 0]


def test_session_refuses_short_catalog(catalog: CardCatalog) -> None:
    room = create_room(HOST, GuessSettings(categories=("tools",), total_questions=7))
    with pytest.raises(InsufficientCards) as exc_info:
        start_guess_session(room, catalog)
    assert exc_info.value.available == 6
    assert room.status == "lobby"
    assert room.used_card_ids == []


def test_session_only_starts_from_lobby(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    start_guess_session(guess_room, catalog)
    drawn = list(guess_room.used_card_ids)
    start_guess_session(guess_room, catalog)
    assert guess_room.used_card_ids == drawn


@pytest.mark.parametrize(
    ("answer", "used_hint", "correct", "expected_score"),
    [
        ("Скальпель", False, True, 1),
        ("  СКАЛЬПЕЛЬ ", True, True, 0.5),
        ("пинцет", False, False, 0),
    ],
)
def test_submit_scoring(
    guess_room: GuessRoom,
    catalog: CardCatalog,
    answer: str,
    used_hint: bool,
    correct: bool,
    expected_score: float,
) -> None:
    start_guess_session(guess_room, catalog)
    _put_card_first(guess_room, "tools-scalpel")

    result = submit_guess(guess_room, catalog, HOST.id, answer, used_hint)

    assert result is not None
    assert result.correct is correct
    assert result.card.id == "tools-scalpel"
    assert guess_room.players[0].score == expected_score
    assert guess_room.guess_showing_result is True
    assert guess_room.guess_last_result is not None
    assert guess_room.guess_last_result.answered_by_name == HOST.name
    assert guess_room.guess_result_shown_at is not None


def test_wrong_answer_with_hint_never_goes_negative(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    start_guess_session(guess_room, catalog)
    _put_card_first(guess_room, "tools-scalpel")

    submit_guess(guess_room, catalog, HOST.id, "нож", used_hint=True)

    assert guess_room.players[0].score == 0


def test_hint_penalty_applies_to_existing_score(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    start_guess_session(guess_room, catalog)
    guess_room.players[0].score = 2
    _put_card_first(guess_room, "tools-scalpel")

    submit_guess(guess_room, catalog, HOST.id, "нож", used_hint=True)

    assert guess_room.players[0].score == 1.5


def test_first_submission_wins(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    join_room(guess_room, GUEST)
    start_guess_session(guess_room, catalog)
    _put_card_first(guess_room, "tools-scalpel")

    assert submit_guess(guess_room, catalog, HOST.id, "скальпель") is not None
    assert submit_guess(guess_room, catalog, HOST.id, "скальпель") is None
    assert submit_guess(guess_room, catalog, GUEST.id, "скальпель") is None

    assert [player.score for player in guess_room.players] == [1, 0]


def test_submit_ignored_outside_game_and_for_strangers(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    assert submit_guess(guess_room, catalog, HOST.id, "скальпель") is None
    start_guess_session(guess_room, catalog)
    assert submit_guess(guess_room, catalog, "stranger", "скальпель") is None
    assert guess_room.guess_showing_result is False


def test_advance_requires_result_on_screen(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    start_guess_session(guess_room, catalog)
    advance_guess_question(guess_room)
    assert guess_room.current_question_index == 0

    submit_guess(guess_room, catalog, HOST.id, "?")
    advance_guess_question(guess_room)
    assert guess_room.current_question_index == 1
    assert guess_room.guess_showing_result is False
    assert guess_room.guess_last_result is None
    assert guess_room.status == "inGame"

    advance_guess_question(guess_room)
    assert guess_room.current_question_index == 1


def test_session_finishes_after_last_question(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    start_guess_session(guess_room, catalog)
    for _ in range(5):
        submit_guess(guess_room, catalog, HOST.id, "?")
        advance_guess_question(guess_room)

    assert guess_room.status == "finished"
    assert guess_room.current_question_index == 4
    assert guess_room.guess_started_at is None


def test_standings_share_places_on_ties(guess_room: GuessRoom) -> None:
    join_room(guess_room, GUEST)
    guess_room.players.append(Player(id="p3", name="Вера", score=0.5))
    guess_room.players[0].score = 3
    guess_room.players[1].score = 3

    standings = guess_standings(guess_room)

    assert [row["place"] for row in standings] == [1, 1, 3]
    assert standings[2]["score"] == 0.5
