from __future__ import annotations

import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from pulse_ai.core.config import settings
from pulse_ai.core.errors import ResourceStoreError

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None


def get_redis_client() -> Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


async def close_redis_client() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def _decode(field: str, raw: str) -> dict[str, Any] | None:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("[RedisDecodeError] field=%s skipped", field)
        return None
    return data if isinstance(data, dict) else None


async def hash_get_all_json(client: Redis, key: str) -> dict[str, dict[str, Any]]:
    """Return every field of a hash whose values are JSON objects, skipping corrupt ones."""
    try:
        raw = await client.hgetall(key)
    except RedisError as exc:
        logger.exception("[RedisHGetAllError] key=%s", key)
        raise ResourceStoreError(f"Failed to read '{key}'") from exc

    out: dict[str, dict[str, Any]] = {}
    for field, value in raw.items():
        doc = _decode(field, value)
        if doc is not None:
            out[field] = doc
    return out


async def hash_get_json(client: Redis, key: str, field: str) -> dict[str, Any] | None:
    try:
        raw = await client.hget(key, field)
    except RedisError as exc:
        logger.exception("[RedisHGetError] key=%s field=%s", key, field)
        raise ResourceStoreError(f"Failed to read '{key}:{field}'") from exc
    if raw is None:
        return None
    return _decode(field, raw)


async def hash_set_json(client: Redis, key: str, field: str, value: dict[str, Any]) -> None:
    try:
        await client.hset(key, field, json.dumps(value, ensure_ascii=False))
    except RedisError as exc:
        logger.exception("[RedisHSetError] key=%s field=%s", key, field)
        raise ResourceStoreError(f"Failed to write '{key}:{field}'") from exc


async def hash_delete(client: Redis, key: str, field: str) -> bool:
    try:
        removed = await client.hdel(key, field)
    except RedisError as exc:
        logger.exception("[RedisHDelError] key=%s field=%s", key, field)
        raise ResourceStoreError(f"Failed to delete '{key}:{field}'") from exc
    return bool(removed)
