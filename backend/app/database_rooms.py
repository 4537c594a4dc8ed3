from __future__ import annotations

import json
import logging
from typing import Any

import asyncpg

logger = logging.getLogger(__name__)


async def load_room_snapshots(pool: asyncpg.Pool) -> dict[str, dict[str, Any]]:
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT room_id, state_json FROM room_snapshots")

    rooms: dict[str, dict[str, Any]] = {}
    for row in rows:
        raw_state = row["state_json"] or "{}"
        try:
            state_json = json.loads(raw_state)
        except ValueError:
            logger.warning("Skipping unparseable snapshot for room %s", row["room_id"])
            continue
        if isinstance(state_json, dict):
            rooms[row["room_id"]] = state_json
    return rooms


async def replace_room_snapshots(pool: asyncpg.Pool, rooms: dict[str, dict[str, Any]]) -> None:
    room_ids = list(rooms.keys())
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(
                "DELETE FROM room_snapshots WHERE NOT (room_id = ANY($1::varchar[]))",
                room_ids,
            )
            if not rooms:
                return
            await conn.executemany(
                """
                INSERT INTO room_snapshots (room_id, mode, state_json)
                VALUES ($1, $2, $3)
                ON CONFLICT (room_id) DO UPDATE
                SET mode = EXCLUDED.mode,
                    state_json = EXCLUDED.state_json,
                    updated_at = NOW()
                """,
                [
                    (
                        room_id,
                        str((document.get("settings") or {}).get("mode") or "")[:8],
                        json.dumps(document, ensure_ascii=False),
                    )
                    for room_id, document in rooms.items()
                ],
            )
