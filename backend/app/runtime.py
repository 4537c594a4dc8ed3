from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .card_catalog import CardCatalog, load_card_catalog
from .config import Settings
from .room_repository import RoomRepository
from .room_storage import RoomStore, build_room_store
from .runtime_constants import CATEGORIES
from .runtime_errors import Conflict, InvalidRoomDocument, MalformedPersistedState, RoomNotFound
from .runtime_guess_flow import (
    advance_guess_question,
    guess_standings,
    start_guess_countdown,
    start_guess_session,
    submit_guess,
)
from .runtime_lifecycle import create_room, join_room, join_team, leave_room
from .runtime_snapshot import parse_room, serialize_room
from .runtime_teams_flow import (
    apply_round_word_confirmation,
    finish_teams_game,
    process_teams_card_action,
    start_teams_game,
    start_teams_round,
    teams_winners,
)
from .runtime_timers import build_timer_view
from .runtime_types import (
    AuthUser,
    CategoryId,
    GuessResult,
    GuessRoom,
    Room,
    RoomSettings,
    TeamsCardAction,
    TeamsRoom,
)
from .runtime_utils import now_ms, sanitize_room_id, score_value

logger = logging.getLogger(__name__)


@dataclass
class RoomUpdate:
    room: Room | None
    applied: bool
    result: GuessResult | None = None

    @property
    def deleted(self) -> bool:
        return self.room is None


class SessionRuntime:
    def __init__(
        self,
        store: RoomStore,
        catalog: CardCatalog,
        enforce_max_players: bool = True,
    ) -> None:
        self.store = store
        self.repository = RoomRepository(store)
        self.catalog = catalog
        self.enforce_max_players = enforce_max_players

    async def open(self) -> None:
        await self.store.open()
        logger.info("Session runtime started with %s room storage", self.store.name)

    async def shutdown(self) -> None:
        await self.store.close()

    def _log_room_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "room.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def _mutate(self, room_id: str, event: str, transform: Callable[[Room], Any]) -> RoomUpdate:
        room_id = sanitize_room_id(room_id)
        async with self.repository.transaction(room_id) as tx:
            outcome = transform(tx.room)
        if tx.changed:
            self._log_room_event(event, roomId=room_id, version=tx.room.version)
        return RoomUpdate(
            room=tx.room,
            applied=tx.changed,
            result=outcome if isinstance(outcome, GuessResult) else None,
        )

    # Lifecycle

    async def create_room(self, host: AuthUser, room_settings: RoomSettings) -> Room:
        room = await self.repository.create(
            lambda known_ids: create_room(host, room_settings, known_ids)
        )
        self._log_room_event("created", roomId=room.id, mode=room.settings.mode, hostId=host.id)
        return room

    async def get_room(self, room_id: str) -> Room:
        room_id = sanitize_room_id(room_id)
        room = await self.repository.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    async def join_room(self, room_id: str, user: AuthUser) -> RoomUpdate:
        return await self._mutate(
            room_id, "joined", lambda room: join_room(room, user, self.enforce_max_players)
        )

    async def leave_room(self, room_id: str, user_id: str) -> RoomUpdate:
        room_id = sanitize_room_id(room_id)
        async with self.repository.transaction(room_id) as tx:
            if leave_room(tx.room, user_id):
                tx.delete()

        if tx.deleted:
            self._log_room_event("deleted", roomId=room_id, lastUserId=user_id)
            return RoomUpdate(room=None, applied=True)
        if tx.changed:
            self._log_room_event("left", roomId=room_id, userId=user_id, hostId=tx.room.host_id)
        return RoomUpdate(room=tx.room, applied=tx.changed)

    async def join_team(self, room_id: str, user_id: str, team_id: str) -> RoomUpdate:
        return await self._mutate(
            room_id, "team_joined", lambda room: join_team(room, user_id, team_id)
        )

    async def replace_room(
        self,
        room_id: str,
        document: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> Room:
        room_id = sanitize_room_id(room_id)
        if sanitize_room_id(str(document.get("id") or "")) != room_id:
            raise InvalidRoomDocument("Room id in body does not match the path")
        try:
            replacement = parse_room(dict(document))
        except MalformedPersistedState as exc:
            raise InvalidRoomDocument(exc.message) from exc
        # Stored key and room id stay identical.
        replacement.id = room_id

        try:
            room = await self.repository.replace(room_id, replacement, expected_version)
        except Conflict as exc:
            self._log_room_event(
                "conflict",
                level=logging.WARNING,
                roomId=room_id,
                expected=exc.expected,
                actual=exc.actual,
            )
            raise
        self._log_room_event("replaced", roomId=room_id, version=room.version)
        return room

    # Guess mode

    async def start_guess_countdown(self, room_id: str) -> RoomUpdate:
        return await self._mutate(room_id, "guess.countdown", _guess_only(start_guess_countdown))

    async def start_guess_session(self, room_id: str) -> RoomUpdate:
        return await self._mutate(
            room_id,
            "guess.started",
            _guess_only(lambda room: start_guess_session(room, self.catalog)),
        )

    async def submit_guess(
        self,
        room_id: str,
        user_id: str,
        answer: str,
        used_hint: bool = False,
    ) -> RoomUpdate:
        return await self._mutate(
            room_id,
            "guess.answered",
            _guess_only(lambda room: submit_guess(room, self.catalog, user_id, answer, used_hint)),
        )

    async def advance_guess_question(self, room_id: str) -> RoomUpdate:
        return await self._mutate(room_id, "guess.advanced", _guess_only(advance_guess_question))

    # Teams mode

    async def start_teams_game(self, room_id: str) -> RoomUpdate:
        return await self._mutate(
            room_id,
            "teams.started",
            _teams_only(lambda room: start_teams_game(room, self.catalog)),
        )

    async def process_teams_card_action(
        self,
        room_id: str,
        action: TeamsCardAction,
        end_round: bool = False,
    ) -> RoomUpdate:
        return await self._mutate(
            room_id,
            "teams.card",
            _teams_only(lambda room: process_teams_card_action(room, action, end_round)),
        )

    async def apply_round_word_confirmation(
        self,
        room_id: str,
        overrides: Mapping[str, bool] | None = None,
    ) -> RoomUpdate:
        return await self._mutate(
            room_id,
            "teams.confirmed",
            _teams_only(lambda room: apply_round_word_confirmation(room, overrides)),
        )

    async def start_teams_round(self, room_id: str, expected_round: int | None = None) -> RoomUpdate:
        return await self._mutate(
            room_id,
            "teams.next_round",
            _teams_only(lambda room: start_teams_round(room, expected_round)),
        )

    async def finish_teams_game(self, room_id: str) -> RoomUpdate:
        return await self._mutate(room_id, "teams.finished", _teams_only(finish_teams_game))

    # Views

    def room_view(self, room: Room, now: int | None = None) -> dict[str, Any]:
        payload = serialize_room(room)
        payload.update(build_timer_view(room, now if now is not None else now_ms()))
        if isinstance(room, GuessRoom):
            if room.status == "finished":
                payload["standings"] = guess_standings(room)
        else:
            payload["winners"] = [
                {"teamId": team.id, "name": team.name, "score": score_value(team.score)}
                for team in teams_winners(room)
            ]
        return payload

    def categories_view(self) -> list[dict[str, Any]]:
        counts = self.catalog.card_count_by_category()
        return [
            {
                "id": meta.id,
                "label": meta.label,
                "icon": meta.icon,
                "points": meta.points,
                "description": meta.description,
                "cardCount": counts.get(meta.id, 0),
            }
            for meta in CATEGORIES.values()
        ]

    def card_availability(self, categories: list[CategoryId], count: int) -> dict[str, Any]:
        available = len(self.catalog.cards_by_categories(categories))
        return {
            "categories": list(categories),
            "requested": count,
            "available": available,
            "hasEnough": self.catalog.has_enough_cards(categories, count),
        }


def _guess_only(transform: Callable[[GuessRoom], Any]) -> Callable[[Room], Any]:
    def apply(room: Room) -> Any:
        if isinstance(room, GuessRoom):
            return transform(room)
        return None

    return apply


def _teams_only(transform: Callable[[TeamsRoom], Any]) -> Callable[[Room], Any]:
    def apply(room: Room) -> Any:
        if isinstance(room, TeamsRoom):
            return transform(room)
        return None

    return apply


def build_runtime(config: Settings) -> SessionRuntime:
    return SessionRuntime(
        store=build_room_store(config),
        catalog=load_card_catalog(config.cards_catalog_path),
        enforce_max_players=config.enforce_max_players,
    )
