from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any

from . import database, redis_rooms
from .config import Settings

logger = logging.getLogger(__name__)

RoomDocuments = dict[str, dict[str, Any]]


class RoomStore:
    """Whole-map room storage: callers always load everything and save everything."""

    name = "base"

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def load(self) -> RoomDocuments:
        raise NotImplementedError

    async def save(self, rooms: RoomDocuments) -> None:
        raise NotImplementedError


class MemoryRoomStore(RoomStore):
    name = "memory"

    def __init__(self, rooms: RoomDocuments | None = None) -> None:
        self._rooms: RoomDocuments = copy.deepcopy(rooms or {})

    async def load(self) -> RoomDocuments:
        return copy.deepcopy(self._rooms)

    async def save(self, rooms: RoomDocuments) -> None:
        self._rooms = copy.deepcopy(rooms)


class FileRoomStore(RoomStore):
    name = "file"

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    async def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> RoomDocuments:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError):
            logger.exception("Failed to read rooms file %s, starting from an empty map", self.path)
            return {}
        if not isinstance(payload, dict):
            logger.error("Rooms file %s does not hold an object, starting from an empty map", self.path)
            return {}
        return {str(room_id): doc for room_id, doc in payload.items() if isinstance(doc, dict)}

    def _write(self, rooms: RoomDocuments) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(rooms, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    async def load(self) -> RoomDocuments:
        return await asyncio.to_thread(self._read)

    async def save(self, rooms: RoomDocuments) -> None:
        await asyncio.to_thread(self._write, rooms)


class PostgresRoomStore(RoomStore):
    name = "postgres"

    async def open(self) -> None:
        await database.init_db()

    async def close(self) -> None:
        await database.close_db()

    async def ping(self) -> bool:
        return await database.ping_db()

    async def load(self) -> RoomDocuments:
        return await database.load_room_snapshots()

    async def save(self, rooms: RoomDocuments) -> None:
        await database.replace_room_snapshots(rooms)


class RedisRoomStore(RoomStore):
    name = "redis"

    async def open(self) -> None:
        if not await redis_rooms.init_redis():
            raise RuntimeError("Redis room store is unavailable")

    async def close(self) -> None:
        await redis_rooms.close_redis()

    async def ping(self) -> bool:
        return await redis_rooms.ping_redis()

    async def load(self) -> RoomDocuments:
        return await redis_rooms.load_rooms_hash()

    async def save(self, rooms: RoomDocuments) -> None:
        await redis_rooms.replace_rooms_hash(rooms)


def build_room_store(config: Settings) -> RoomStore:
    if config.room_storage == "memory":
        return MemoryRoomStore()
    if config.room_storage == "postgres":
        return PostgresRoomStore()
    if config.room_storage == "redis":
        return RedisRoomStore()
    return FileRoomStore(config.rooms_file)
