import json
from typing import Any, Optional

import redis.asyncio as redis

from common.core.config import settings
from .interface import CacheInterface
from common.core.otel_axiom_exporter import get_logger, trace_span

logger = get_logger(__name__)


class RedisCache(CacheInterface):
    """
    Redis-backed cache.

    Keys are tracked in a per-prefix set (``cache_index:<prefix>``) so pattern
    deletes never have to run KEYS against a shared instance. Every failure is
    logged and reported as a miss; the cache must never break a request.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client
        self._index_prefix = "cache_index:"

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                settings.redis_connection_url, decode_responses=True
            )
            logger.info("Redis cache provider connected")
        return self._client

    def _index_key(self, key_or_pattern: str) -> str:
        base = key_or_pattern.rstrip("*").rstrip(":").split(":")[0]
        return f"{self._index_prefix}{base}"

    @trace_span
    async def get(self, key: str) -> Optional[Any]:
        try:
            value = await self._get_client().get(key)
            return json.loads(value) if value is not None else None
        except Exception as e:
            logger.error(f"Error getting cache key {key}: {e}")
            return None

    @trace_span
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            client = self._get_client()
            serialized = json.dumps(value, default=str)
            if ttl:
                await client.setex(key, ttl, serialized)
            else:
                await client.set(key, serialized)
            await client.sadd(self._index_key(key), key)
            return True
        except Exception as e:
            logger.error(f"Error setting cache key {key}: {e}")
            return False

    @trace_span
    async def delete(self, key: str) -> bool:
        try:
            client = self._get_client()
            deleted = await client.delete(key)
            await client.srem(self._index_key(key), key)
            return bool(deleted)
        except Exception as e:
            logger.error(f"Error deleting cache key {key}: {e}")
            return False

    @trace_span
    async def delete_pattern(self, pattern: str) -> int:
        try:
            client = self._get_client()
            index_key = self._index_key(pattern)
            keys = await client.smembers(index_key)
            if not keys:
                return 0
            deleted = await client.delete(*keys)
            await client.srem(index_key, *keys)
            logger.info(f"Deleted {deleted} cache keys matching pattern {pattern}")
            return deleted
        except Exception as e:
            logger.error(f"Error deleting cache pattern {pattern}: {e}")
            return 0
