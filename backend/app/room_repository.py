from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable

from .room_storage import RoomStore
from .runtime_errors import Conflict, MalformedPersistedState, RoomNotFound
from .runtime_snapshot import parse_room, serialize_room
from .runtime_types import Room

logger = logging.getLogger(__name__)


@dataclass
class RoomTransaction:
    room: Room
    original: dict[str, Any] = field(repr=False)
    deleted: bool = False
    changed: bool = False

    def delete(self) -> None:
        self.deleted = True


@dataclass
class _RoomLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class RoomRepository:
    """Per-room read-modify-write transactions over a whole-map room store.

    Operations on one room are serialized by that room's lock. Commits re-read
    the map under a short store-wide lock and replace only their own entry, so
    concurrent commits for different rooms never overwrite each other.
    A room lock lives only while some transaction holds or waits for it.
    """

    def __init__(self, store: RoomStore) -> None:
        self.store = store
        self._room_locks: dict[str, _RoomLock] = {}
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def _locked(self, room_id: str) -> AsyncIterator[None]:
        entry = self._room_locks.setdefault(room_id, _RoomLock())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._room_locks.pop(room_id, None)

    @staticmethod
    def _parse_entry(room_id: str, document: Any) -> Room | None:
        try:
            return parse_room(document)
        except MalformedPersistedState as exc:
            logger.warning("Skipping malformed room %s: %s", room_id, exc.message)
        except Exception:
            logger.exception("Skipping unreadable room %s", room_id)
        return None

    async def list_rooms(self) -> dict[str, Room]:
        rooms: dict[str, Room] = {}
        for room_id, document in (await self.store.load()).items():
            room = self._parse_entry(room_id, document)
            if room is not None:
                rooms[room_id] = room
        return rooms

    async def get(self, room_id: str) -> Room | None:
        document = (await self.store.load()).get(room_id)
        if document is None:
            return None
        return self._parse_entry(room_id, document)

    async def create(self, build: Callable[[set[str]], Room]) -> Room:
        """Build a room from the set of ids in use and store it atomically."""
        async with self._write_lock:
            documents = await self.store.load()
            room = build(set(documents))
            documents[room.id] = serialize_room(room)
            await self.store.save(documents)
        return room

    @asynccontextmanager
    async def transaction(self, room_id: str) -> AsyncIterator[RoomTransaction]:
        async with self._locked(room_id):
            room = await self.get(room_id)
            if room is None:
                raise RoomNotFound(room_id)

            tx = RoomTransaction(room=room, original=serialize_room(room))
            yield tx
            await self._commit(room_id, tx)

    async def replace(self, room_id: str, room: Room, expected_version: int | None = None) -> Room:
        async with self.transaction(room_id) as tx:
            if expected_version is not None and expected_version != tx.room.version:
                raise Conflict(room_id, expected_version, tx.room.version)
            room.version = tx.room.version
            tx.room = room
        return tx.room

    async def _commit(self, room_id: str, tx: RoomTransaction) -> None:
        if tx.deleted:
            async with self._write_lock:
                documents = await self.store.load()
                documents.pop(room_id, None)
                await self.store.save(documents)
            tx.changed = True
            return

        if serialize_room(tx.room) == tx.original:
            return

        tx.room.version += 1
        async with self._write_lock:
            documents = await self.store.load()
            documents[room_id] = serialize_room(tx.room)
            await self.store.save(documents)
        tx.changed = True
