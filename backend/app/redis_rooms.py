from __future__ import annotations

import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url

from .config import settings

logger = logging.getLogger(__name__)

_redis: Redis | None = None


async def init_redis() -> bool:
    global _redis
    if _redis is not None:
        return True

    if not settings.redis_url:
        logger.warning("REDIS_URL is not configured")
        return False

    client = redis_from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        logger.exception("Failed to connect to Redis %s", settings.redis_url)
        await client.aclose()
        return False

    _redis = client
    logger.info("Redis room store connected")
    return True


async def close_redis() -> None:
    global _redis
    if _redis is None:
        return
    try:
        await _redis.aclose()
    finally:
        _redis = None


async def ping_redis() -> bool:
    if _redis is None:
        return False
    try:
        await _redis.ping()
        return True
    except Exception:
        logger.exception("Redis ping failed")
        return False


def _client() -> Redis:
    if _redis is None:
        raise RuntimeError("Redis room store is not connected")
    return _redis


async def load_rooms_hash() -> dict[str, dict[str, Any]]:
    raw_rooms = await _client().hgetall(settings.redis_rooms_key)
    rooms: dict[str, dict[str, Any]] = {}
    for room_id, raw in raw_rooms.items():
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Skipping unparseable Redis entry for room %s", room_id)
            continue
        if isinstance(payload, dict):
            rooms[room_id] = payload
    return rooms


async def replace_rooms_hash(rooms: dict[str, dict[str, Any]]) -> None:
    key = settings.redis_rooms_key
    async with _client().pipeline(transaction=True) as pipe:
        pipe.delete(key)
        if rooms:
            pipe.hset(
                key,
                mapping={
                    room_id: json.dumps(document, ensure_ascii=False)
                    for room_id, document in rooms.items()
                },
            )
        await pipe.execute()
