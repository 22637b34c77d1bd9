"""Redis 읽기 캐시 유틸리티.

Redis read-through cache helpers. Caching is optional: with an empty
``REDIS_URL`` every call is a no-op. Redis failures are logged and never
propagate, so the API keeps serving from the database when Redis is down.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from cloudarc.config import settings

logger = logging.getLogger(__name__)


class JsonCache:
    """JSON 값을 저장하는 Redis 캐시.

    JSON-valued Redis cache with a default TTL.

    Attributes:
        ttl: 기본 만료 시간(초) (Default expiry in seconds)
    """

    def __init__(self, url: str, ttl: int = 60) -> None:
        self.ttl: int = ttl
        self._client: redis.Redis | None = redis.Redis.from_url(url, decode_responses=True) if url else None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def get(self, key: str) -> Any | None:
        """캐시 조회. 미스 또는 오류 시 None (None on miss or error)."""
        if self._client is None:
            return None
        try:
            raw: str | None = await self._client.get(key)
        except RedisError as exc:
            logger.warning("cache get failed for %s: %s", key, exc)
            return None
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._client is None:
            return
        try:
            await self._client.set(key, json.dumps(value, default=str), ex=ttl or self.ttl)
        except RedisError as exc:
            logger.warning("cache set failed for %s: %s", key, exc)

    async def delete(self, *keys: str) -> None:
        if self._client is None or not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as exc:
            logger.warning("cache delete failed: %s", exc)

    async def delete_pattern(self, pattern: str) -> None:
        """패턴에 맞는 키를 모두 삭제 (Delete every key matching a glob pattern)."""
        if self._client is None:
            return
        try:
            keys: list[str] = [key async for key in self._client.scan_iter(match=pattern)]
            if keys:
                await self._client.delete(*keys)
        except RedisError as exc:
            logger.warning("cache invalidation failed for %s: %s", pattern, exc)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()


# 싱글턴 인스턴스 - Singleton instance
cache: JsonCache = JsonCache(settings.REDIS_URL, settings.CACHE_TTL_SECONDS)
