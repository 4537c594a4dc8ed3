from __future__ import annotations

import logging
from typing import Any

import asyncpg

from .config import settings
from .database_rooms import load_room_snapshots as load_room_snapshots_impl
from .database_rooms import replace_room_snapshots as replace_room_snapshots_impl

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


def _normalized_database_url() -> str:
    url = settings.database_url.strip()
    if url.startswith("postgresql+asyncpg://"):
        return "postgresql://" + url[len("postgresql+asyncpg://") :]
    return url


async def _get_pool() -> asyncpg.Pool:
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(dsn=_normalized_database_url(), min_size=1, max_size=10)
    return _pool


async def init_db() -> None:
    pool = await _get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS room_snapshots (
              id BIGSERIAL PRIMARY KEY,
              room_id VARCHAR(8) UNIQUE NOT NULL,
              mode VARCHAR(8) NOT NULL DEFAULT '',
              state_json TEXT NOT NULL DEFAULT '{}',
              created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
              updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )
    logger.info("Room snapshot table is ready")


async def close_db() -> None:
    global _pool
    if _pool is None:
        return
    try:
        await _pool.close()
    finally:
        _pool = None


async def ping_db() -> bool:
    try:
        pool = await _get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        return True
    except Exception:
        logger.exception("Database ping failed")
        return False


async def load_room_snapshots() -> dict[str, dict[str, Any]]:
    pool = await _get_pool()
    return await load_room_snapshots_impl(pool)


async def replace_room_snapshots(rooms: dict[str, dict[str, Any]]) -> None:
    pool = await _get_pool()
    await replace_room_snapshots_impl(pool, rooms)
