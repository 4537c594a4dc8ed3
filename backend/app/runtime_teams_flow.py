from __future__ import annotations

import logging
from typing import Mapping

from .card_catalog import CardCatalog
from .runtime_constants import (
    LAST_ROUNDS_HISTORY,
    TEAMS_ACCEPT_POINTS,
    TEAMS_FACT_POINTS,
    TEAMS_GESTURES_ACCEPT_POINTS,
    TEAMS_SKIP_PENALTY_POINTS,
)
from .runtime_errors import InsufficientCards, InvalidSettings
from .runtime_types import Team, TeamsCardAction, TeamsGameState, TeamsRoom
from .runtime_utils import clamp_score, now_ms

logger = logging.getLogger(__name__)


def pick_explainer(room: TeamsRoom, team_index: int, round_number: int) -> str:
    """Members of a team take turns explaining, one turn per full lap over the teams."""
    if not room.teams:
        return room.host_id
    team = room.teams[team_index % len(room.teams)]
    members = [pid for pid in team.player_ids if room.find_player(pid)]
    if not members:
        return room.host_id
    lap = (round_number - 1) // len(room.teams)
    return members[lap % len(members)]


def start_teams_game(room: TeamsRoom, catalog: CardCatalog) -> None:
    if room.status != "lobby":
        return
    if not room.teams:
        raise InvalidSettings("Teams mode needs at least one team")

    source_cards = catalog.cards_by_categories(room.settings.categories)
    if not source_cards:
        raise InsufficientCards(1, 0)

    deck = catalog.pick_random_distinct(source_cards, len(source_cards))
    for team in room.teams:
        team.score = 0

    room.teams_game_state = TeamsGameState(
        round_card_ids=[card.id for card in deck],
        current_round=1,
        current_card_index_in_round=0,
        current_team_index=0,
        current_explainer_player_id=pick_explainer(room, 0, 1),
        phase="round",
        round_started_at=now_ms(),
    )
    room.used_card_ids = [card.id for card in deck]
    room.status = "inGame"
    logger.info("teams game started room=%s deck=%s", room.id, len(deck))


def process_teams_card_action(
    room: TeamsRoom,
    action: TeamsCardAction,
    end_round: bool = False,
) -> None:
    state = room.teams_game_state
    if room.status != "inGame" or state is None or state.phase != "round":
        return
    index = state.current_card_index_in_round
    if not 0 <= index < len(state.round_card_ids):
        return

    card_id = state.round_card_ids[index]
    state.round_card_actions[card_id] = action
    if card_id not in state.used_card_ids_in_game:
        state.used_card_ids_in_game.append(card_id)
    state.current_card_index_in_round = index + 1

    if end_round or state.current_card_index_in_round >= len(state.round_card_ids):
        state.phase = "wordConfirmation"


def _card_points(room: TeamsRoom, action: TeamsCardAction, counted: bool) -> float:
    if not counted:
        return -TEAMS_SKIP_PENALTY_POINTS if room.settings.skip_penalty else 0.0
    if action == "accept":
        if room.settings.game_sub_modes.gestures:
            return TEAMS_GESTURES_ACCEPT_POINTS
        return TEAMS_ACCEPT_POINTS
    if action == "fact":
        return TEAMS_FACT_POINTS
    return 0.0


def current_team(room: TeamsRoom) -> Team | None:
    state = room.teams_game_state
    if state is None or not room.teams:
        return None
    return room.teams[state.current_team_index % len(room.teams)]


def apply_round_word_confirmation(room: TeamsRoom, overrides: Mapping[str, bool] | None = None) -> None:
    state = room.teams_game_state
    if state is None or state.phase != "wordConfirmation":
        return

    overrides = overrides or {}
    team = current_team(room)
    if team is not None:
        delta = 0.0
        for card_id in state.round_card_ids:
            action = state.round_card_actions.get(card_id)
            if action is None:
                continue
            counted = overrides.get(card_id, action != "skip")
            delta += _card_points(room, action, bool(counted))
        team.score = clamp_score(team.score + delta)
        logger.info(
            "teams round scored room=%s round=%s team=%s delta=%s",
            room.id,
            state.current_round,
            team.id,
            delta,
        )

    state.phase = "roundResults"
    state.round_card_actions = {}


def start_teams_round(room: TeamsRoom, expected_round: int | None = None) -> None:
    state = room.teams_game_state
    if state is None or room.status != "inGame":
        return
    if expected_round is not None and expected_round != state.current_round:
        return

    team_count = max(1, len(room.teams))
    state.last3_round_card_ids = (state.last3_round_card_ids + [list(state.round_card_ids)])[
        -LAST_ROUNDS_HISTORY:
    ]
    state.current_team_index = (state.current_team_index + 1) % team_count
    state.current_round += 1
    state.current_card_index_in_round = 0
    state.round_card_actions = {}
    state.current_explainer_player_id = pick_explainer(
        room, state.current_team_index, state.current_round
    )

    if state.round_card_ids:
        state.phase = "round"
        state.round_started_at = now_ms()
    else:
        state.phase = "roundResults"
        state.round_started_at = None


def finish_teams_game(room: TeamsRoom) -> None:
    if room.status == "finished":
        return
    room.status = "finished"
    logger.info("teams game finished room=%s", room.id)


def teams_winners(room: TeamsRoom) -> list[Team]:
    target = room.settings.points_to_win
    return [team for team in room.teams if team.score >= target]
