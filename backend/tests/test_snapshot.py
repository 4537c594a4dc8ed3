from __future__ import annotations

import pytest

from app.card_catalog import CardCatalog
from app.runtime_errors import MalformedPersistedState
from app.runtime_guess_flow import start_guess_session, submit_guess
from app.runtime_snapshot import parse_room, serialize_room
from app.runtime_teams_flow import process_teams_card_action, start_teams_game
from app.runtime_types import GuessRoom, TeamsRoom
from conftest import HOST


def test_guess_room_document_uses_camel_case(guess_room: GuessRoom, catalog: CardCatalog) -> None:
    start_guess_session(guess_room, catalog)
    guess_room.used_card_ids[0] = "tools-scalpel"
    submit_guess(guess_room, catalog, HOST.id, "скальпель", used_hint=True)

    document = serialize_room(guess_room)

    assert document["hostId"] == HOST.id
    assert document["settings"] == {
        "mode": "guess",
        "categories": ["tools"],
        "roundDurationSec": 30,
        "maxPlayers": 50,
        "totalQuestions": 5,
    }
    assert document["players"][0]["score"] == 0.5
    assert document["teams"] == []
    assert document["guessLastResult"] == {
        "correct": True,
        "cardId": "tools-scalpel",
        "answeredByName": HOST.name,
    }
    assert "teamsGameState" not in document


def test_whole_scores_serialize_as_integers(guess_room: GuessRoom) -> None:
    guess_room.players[0].score = 3.0
    assert serialize_room(guess_room)["players"][0]["score"] == 3
    assert isinstance(serialize_room(guess_room)["players"][0]["score"], int)


def test_teams_room_survives_a_round_trip(teams_room: TeamsRoom, catalog: CardCatalog) -> None:
    start_teams_game(teams_room, catalog)
    process_teams_card_action(teams_room, "fact")

    restored = parse_room(serialize_room(teams_room))

    assert isinstance(restored, TeamsRoom)
    assert restored == teams_room


def test_lenient_parsing_fills_defaults() -> None:
    room = parse_room(
        {
            "id": "med123",
            "hostId": "h",
            "settings": {"mode": "teams", "categories": ["anatomy", "unknown"]},
            "players": [{"id": "h", "name": "Хост", "score": "2.5"}, {"id": "h"}, "junk"],
            "status": "paused",
        }
    )

    assert isinstance(room, TeamsRoom)
    assert room.id == "MED123"
    assert room.status == "lobby"
    assert room.settings.categories == ("anatomy",)
    assert room.settings.points_to_win == 25
    assert room.settings.game_sub_modes.active() == "classic"
    assert [(player.id, player.score) for player in room.players] == [("h", 2.5)]
    assert room.teams == []
    assert room.version == 1


@pytest.mark.parametrize(
    "document",
    [
        None,
        {"hostId": "h", "settings": {"mode": "guess"}},
        {"id": "MED100", "settings": {"mode": "guess"}},
        {"id": "MED100", "hostId": "h", "settings": {"mode": "duel"}},
        {"id": "MED100", "hostId": "h"},
    ],
)
def test_identity_fields_are_strict(document) -> None:
    with pytest.raises(MalformedPersistedState):
        parse_room(document)


def test_out_of_range_numbers_fall_back_to_defaults() -> None:
    room = parse_room(
        {
            "id": "MED100",
            "hostId": "h",
            "settings": {"mode": "guess", "totalQuestions": float("inf")},
            "players": [{"id": "h", "name": "Анна", "score": 10**400}, {"id": "g", "score": float("nan")}],
            "guessStartedAt": float("-inf"),
            "version": float("inf"),
        }
    )

    assert isinstance(room, GuessRoom)
    assert room.settings.total_questions == 25
    assert [player.score for player in room.players] == [0, 0]
    assert room.guess_started_at is None
    assert room.version == 1
