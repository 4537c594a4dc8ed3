from __future__ import annotations

from typing import Any, cast

from .runtime_constants import (
    CATEGORIES,
    DEFAULT_GUESS_MAX_PLAYERS,
    DEFAULT_POINTS_TO_WIN,
    DEFAULT_ROUND_DURATION_SEC,
    DEFAULT_TEAMS_MAX_PLAYERS,
    DEFAULT_TOTAL_QUESTIONS,
)
from .runtime_errors import MalformedPersistedState
from .runtime_types import (
    CategoryId,
    GameSubModes,
    GuessLastResult,
    GuessRoom,
    GuessSettings,
    Player,
    Room,
    RoomSettings,
    RoomStatus,
    Team,
    TeamsCardAction,
    TeamsGameState,
    TeamsPhase,
    TeamsRoom,
    TeamsSettings,
)
from .runtime_utils import as_optional_int, as_score, score_value

ROOM_STATUSES = {"lobby", "inGame", "finished"}
TEAMS_PHASES = {"round", "wordConfirmation", "roundResults"}
TEAMS_CARD_ACTIONS = {"skip", "accept", "fact"}


def _as_int(value: Any, default: int) -> int:
    parsed = as_optional_int(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int)) and str(item)]


def _parse_categories(value: Any) -> tuple[CategoryId, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(
        cast(CategoryId, item)
        for item in dict.fromkeys(item for item in value if isinstance(item, str))
        if item in CATEGORIES
    )


def _parse_sub_modes(value: Any) -> GameSubModes:
    if not isinstance(value, dict):
        return GameSubModes()
    gestures = bool(value.get("gestures"))
    charades = bool(value.get("charades")) and not gestures
    return GameSubModes(classic=not (gestures or charades), gestures=gestures, charades=charades)


def serialize_settings(settings: RoomSettings) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "mode": settings.mode,
        "categories": list(settings.categories),
        "roundDurationSec": settings.round_duration_sec,
        "maxPlayers": settings.max_players,
    }
    if isinstance(settings, GuessSettings):
        payload["totalQuestions"] = settings.total_questions
        return payload

    payload["pointsToWin"] = settings.points_to_win
    payload["teamNames"] = list(settings.team_names)
    payload["gameSubModes"] = {
        "classic": settings.game_sub_modes.classic,
        "gestures": settings.game_sub_modes.gestures,
        "charades": settings.game_sub_modes.charades,
    }
    payload["skipPenalty"] = settings.skip_penalty
    if settings.player_count is not None:
        payload["playerCount"] = settings.player_count
    return payload


def parse_settings(state: Any) -> RoomSettings:
    if not isinstance(state, dict):
        raise MalformedPersistedState("settings must be an object")

    mode = state.get("mode")
    categories = _parse_categories(state.get("categories"))
    round_duration_sec = max(1, _as_int(state.get("roundDurationSec"), DEFAULT_ROUND_DURATION_SEC))

    if mode == "guess":
        total_questions = _as_int(state.get("totalQuestions"), DEFAULT_TOTAL_QUESTIONS)
        return GuessSettings(
            categories=categories,
            round_duration_sec=round_duration_sec,
            max_players=max(1, _as_int(state.get("maxPlayers"), DEFAULT_GUESS_MAX_PLAYERS)),
            total_questions=total_questions if total_questions > 0 else DEFAULT_TOTAL_QUESTIONS,
        )

    if mode == "teams":
        team_names_raw = state.get("teamNames")
        team_names = (
            tuple(str(name).strip()[:32] for name in team_names_raw if str(name).strip())
            if isinstance(team_names_raw, list)
            else ()
        )
        return TeamsSettings(
            categories=categories,
            round_duration_sec=round_duration_sec,
            max_players=max(1, _as_int(state.get("maxPlayers"), DEFAULT_TEAMS_MAX_PLAYERS)),
            points_to_win=max(1, _as_int(state.get("pointsToWin"), DEFAULT_POINTS_TO_WIN)),
            team_names=team_names,
            game_sub_modes=_parse_sub_modes(state.get("gameSubModes")),
            skip_penalty=bool(state.get("skipPenalty")),
            player_count=as_optional_int(state.get("playerCount")),
        )

    raise MalformedPersistedState(f"Unknown game mode {mode!r}")


def _serialize_players(players: list[Player]) -> list[dict[str, Any]]:
    return [
        {"id": player.id, "name": player.name, "score": score_value(player.score)}
        for player in players
    ]


def _parse_players(value: Any) -> list[Player]:
    if not isinstance(value, list):
        return []
    players: list[Player] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, dict):
            continue
        player_id = str(item.get("id") or "").strip()
        if not player_id or player_id in seen:
            continue
        seen.add(player_id)
        players.append(
            Player(
                id=player_id,
                name=str(item.get("name") or "Игрок")[:64],
                score=as_score(item.get("score")),
            )
        )
    return players


def _serialize_teams(teams: list[Team]) -> list[dict[str, Any]]:
    return [
        {
            "id": team.id,
            "name": team.name,
            "playerIds": list(team.player_ids),
            "score": score_value(team.score),
        }
        for team in teams
    ]


def _parse_teams(value: Any) -> list[Team]:
    if not isinstance(value, list):
        return []
    teams: list[Team] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            continue
        teams.append(
            Team(
                id=str(item.get("id") or f"team-{index}"),
                name=str(item.get("name") or f"Команда №{index + 1}")[:32],
                player_ids=_as_str_list(item.get("playerIds")),
                score=as_score(item.get("score")),
            )
        )
    return teams


def _serialize_teams_state(state: TeamsGameState) -> dict[str, Any]:
    return {
        "currentRound": state.current_round,
        "roundCardIds": list(state.round_card_ids),
        "currentCardIndexInRound": state.current_card_index_in_round,
        "currentTeamIndex": state.current_team_index,
        "currentExplainerPlayerId": state.current_explainer_player_id,
        "usedCardIdsInGame": list(state.used_card_ids_in_game),
        "last3RoundCardIds": [list(ids) for ids in state.last3_round_card_ids],
        "phase": state.phase,
        "roundCardActions": dict(state.round_card_actions),
        "roundStartedAt": state.round_started_at,
    }


def _parse_teams_state(value: Any) -> TeamsGameState | None:
    if not isinstance(value, dict):
        return None

    phase_raw = value.get("phase")
    phase = cast(TeamsPhase, phase_raw) if isinstance(phase_raw, str) and phase_raw in TEAMS_PHASES else "round"

    actions_raw = value.get("roundCardActions")
    actions: dict[str, TeamsCardAction] = {}
    if isinstance(actions_raw, dict):
        actions = {
            str(card_id): cast(TeamsCardAction, action)
            for card_id, action in actions_raw.items()
            if isinstance(action, str) and action in TEAMS_CARD_ACTIONS
        }

    history_raw = value.get("last3RoundCardIds")
    history = (
        [_as_str_list(ids) for ids in history_raw if isinstance(ids, list)]
        if isinstance(history_raw, list)
        else []
    )

    return TeamsGameState(
        round_card_ids=_as_str_list(value.get("roundCardIds")),
        current_round=max(1, _as_int(value.get("currentRound"), 1)),
        current_card_index_in_round=max(0, _as_int(value.get("currentCardIndexInRound"), 0)),
        current_team_index=max(0, _as_int(value.get("currentTeamIndex"), 0)),
        current_explainer_player_id=str(value.get("currentExplainerPlayerId") or ""),
        used_card_ids_in_game=_as_str_list(value.get("usedCardIdsInGame")),
        last3_round_card_ids=history[-3:],
        phase=phase,
        round_card_actions=actions,
        round_started_at=as_optional_int(value.get("roundStartedAt")),
    )


def serialize_room(room: Room) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": room.id,
        "hostId": room.host_id,
        "settings": serialize_settings(room.settings),
        "players": _serialize_players(room.players),
        "status": room.status,
        "currentQuestionIndex": room.current_question_index,
        "usedCardIds": list(room.used_card_ids),
        "version": room.version,
        "createdAt": room.created_at,
    }

    if isinstance(room, TeamsRoom):
        payload["teams"] = _serialize_teams(room.teams)
        payload["teamsGameState"] = (
            _serialize_teams_state(room.teams_game_state) if room.teams_game_state else None
        )
        return payload

    last_result = room.guess_last_result
    payload["teams"] = []
    payload["guessStartedAt"] = room.guess_started_at
    payload["guessPerQuestionSec"] = room.guess_per_question_sec
    payload["guessShowingResult"] = room.guess_showing_result
    payload["guessLastResult"] = (
        {
            "correct": last_result.correct,
            "cardId": last_result.card_id,
            "answeredByName": last_result.answered_by_name,
        }
        if last_result
        else None
    )
    payload["guessResultShownAt"] = room.guess_result_shown_at
    payload["guessCountdownStartedAt"] = room.guess_countdown_started_at
    return payload


def parse_room(state: Any) -> Room:
    """Build a room from a stored or client-supplied document.

    Identity fields must be valid; everything else falls back to defaults.
    """
    if not isinstance(state, dict):
        raise MalformedPersistedState("room must be an object")

    room_id = str(state.get("id") or "").strip().upper()
    host_id = str(state.get("hostId") or "").strip()
    if not room_id or not host_id:
        raise MalformedPersistedState("room id and hostId are required")

    settings = parse_settings(state.get("settings"))
    status_raw = state.get("status")
    status = cast(RoomStatus, status_raw) if isinstance(status_raw, str) and status_raw in ROOM_STATUSES else "lobby"
    common: dict[str, Any] = {
        "id": room_id,
        "host_id": host_id,
        "players": _parse_players(state.get("players")),
        "status": status,
        "current_question_index": max(0, _as_int(state.get("currentQuestionIndex"), 0)),
        "used_card_ids": _as_str_list(state.get("usedCardIds")),
        "version": max(1, _as_int(state.get("version"), 1)),
        "created_at": as_optional_int(state.get("createdAt")),
    }

    if isinstance(settings, TeamsSettings):
        return TeamsRoom(
            **common,
            settings=settings,
            teams=_parse_teams(state.get("teams")),
            teams_game_state=_parse_teams_state(state.get("teamsGameState")),
        )

    last_result_raw = state.get("guessLastResult")
    last_result = None
    if isinstance(last_result_raw, dict) and last_result_raw.get("cardId"):
        last_result = GuessLastResult(
            correct=bool(last_result_raw.get("correct")),
            card_id=str(last_result_raw.get("cardId")),
            answered_by_name=str(last_result_raw.get("answeredByName") or ""),
        )

    return GuessRoom(
        **common,
        settings=settings,
        guess_started_at=as_optional_int(state.get("guessStartedAt")),
        guess_per_question_sec=as_optional_int(state.get("guessPerQuestionSec")),
        guess_showing_result=bool(state.get("guessShowingResult")),
        guess_last_result=last_result,
        guess_result_shown_at=as_optional_int(state.get("guessResultShownAt")),
        guess_countdown_started_at=as_optional_int(state.get("guessCountdownStartedAt")),
    )
