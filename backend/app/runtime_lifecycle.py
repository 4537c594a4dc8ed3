from __future__ import annotations

import logging
import random
from typing import Iterable

from .runtime_constants import (
    CATEGORIES,
    MAX_PLAYERS_LIMIT,
    MAX_ROUND_SEC,
    MAX_TEAMS,
    MIN_ROUND_SEC,
    ROOM_ID_MAX,
    ROOM_ID_MIN,
    ROOM_ID_PREFIX,
)
from .runtime_errors import InvalidSettings, RoomFull, RoomIdsExhausted
from .runtime_types import (
    AuthUser,
    GuessRoom,
    GuessSettings,
    Player,
    Room,
    RoomSettings,
    Team,
    TeamsRoom,
    TeamsSettings,
)
from .runtime_utils import now_ms, random_room_code

logger = logging.getLogger(__name__)

ROOM_ID_SPACE = ROOM_ID_MAX - ROOM_ID_MIN + 1
RANDOM_ID_ATTEMPTS = 50


def validate_settings(settings: RoomSettings) -> None:
    if settings.mode not in {"guess", "teams"}:
        raise InvalidSettings(f"Unknown game mode {settings.mode!r}")

    unknown = [category for category in settings.categories if category not in CATEGORIES]
    if unknown:
        raise InvalidSettings(f"Unknown categories: {', '.join(map(str, unknown))}")

    if not MIN_ROUND_SEC <= settings.round_duration_sec <= MAX_ROUND_SEC:
        raise InvalidSettings(
            f"roundDurationSec must be between {MIN_ROUND_SEC} and {MAX_ROUND_SEC}"
        )
    if not 1 <= settings.max_players <= MAX_PLAYERS_LIMIT:
        raise InvalidSettings(f"maxPlayers must be between 1 and {MAX_PLAYERS_LIMIT}")

    if isinstance(settings, GuessSettings):
        if settings.total_questions < 1:
            raise InvalidSettings("totalQuestions must be positive")
        return

    if settings.points_to_win < 1:
        raise InvalidSettings("pointsToWin must be positive")
    if len(settings.team_names) > MAX_TEAMS:
        raise InvalidSettings(f"At most {MAX_TEAMS} teams are supported")
    sub_modes = settings.game_sub_modes
    if [sub_modes.classic, sub_modes.gestures, sub_modes.charades].count(True) != 1:
        raise InvalidSettings("Exactly one game sub-mode must be enabled")


def allocate_room_id(known_ids: Iterable[str], rng: random.Random | None = None) -> str:
    taken = set(known_ids)
    for _ in range(RANDOM_ID_ATTEMPTS):
        candidate = random_room_code(rng)
        if candidate not in taken:
            return candidate

    # Dense map: fall back to scanning the remaining codes.
    free = [
        f"{ROOM_ID_PREFIX}{number}"
        for number in range(ROOM_ID_MIN, ROOM_ID_MAX + 1)
        if f"{ROOM_ID_PREFIX}{number}" not in taken
    ]
    if not free:
        raise RoomIdsExhausted(f"All {ROOM_ID_SPACE} room codes are in use")
    return (rng or random).choice(free)


def build_teams(team_names: Iterable[str]) -> list[Team]:
    return [
        Team(id=f"team-{index}", name=name)
        for index, name in enumerate(name.strip() for name in team_names)
        if name
    ]


def create_room(
    host: AuthUser,
    settings: RoomSettings,
    known_ids: Iterable[str] = (),
    rng: random.Random | None = None,
) -> Room:
    validate_settings(settings)
    room_id = allocate_room_id(known_ids, rng)
    players = [Player(id=host.id, name=host.name)]
    created_at = now_ms()

    if isinstance(settings, TeamsSettings):
        return TeamsRoom(
            id=room_id,
            host_id=host.id,
            players=players,
            created_at=created_at,
            settings=settings,
            teams=build_teams(settings.team_names),
        )
    return GuessRoom(
        id=room_id,
        host_id=host.id,
        players=players,
        created_at=created_at,
        settings=settings,
    )


def join_room(room: Room, user: AuthUser, enforce_max_players: bool = True) -> bool:
    """Add `user` to the room. Returns False when the user is already a player."""
    if room.find_player(user.id):
        return False
    if enforce_max_players and len(room.players) >= room.settings.max_players:
        raise RoomFull(f"Room {room.id} is full ({room.settings.max_players} players)")
    room.players.append(Player(id=user.id, name=user.name))
    return True


def leave_room(room: Room, user_id: str) -> bool:
    """Remove a player. Returns True when the room is left empty and must be deleted."""
    remaining = [player for player in room.players if player.id != user_id]
    if len(remaining) == len(room.players):
        return False

    room.players = remaining
    if isinstance(room, TeamsRoom):
        for team in room.teams:
            if user_id in team.player_ids:
                team.player_ids = [pid for pid in team.player_ids if pid != user_id]

    if not remaining:
        return True
    if room.host_id == user_id:
        room.host_id = remaining[0].id
        logger.info("Host of room %s passed to %s", room.id, room.host_id)
    return False


def join_team(room: Room, user_id: str, team_id: str) -> bool:
    if not isinstance(room, TeamsRoom) or room.status != "lobby":
        return False
    target = room.find_team(team_id)
    if target is None or room.find_player(user_id) is None:
        return False
    if user_id in target.player_ids:
        return False

    for team in room.teams:
        if team is not target and user_id in team.player_ids:
            team.player_ids = [pid for pid in team.player_ids if pid != user_id]
    target.player_ids.append(user_id)
    return True
