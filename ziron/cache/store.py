"""
JSON read-through cache used by collection lookups.

The cache is advisory: read/write failures are logged and treated as misses so
a Redis hiccup never fails the request that triggered it.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CACHE_DURATIONS = {
    "SHORT": 60,
    "MEDIUM": 300,
    "LONG": 3600,
}

REDIS_KEYS = {
    "COLLECTIONS": "collections:all",
    "COLLECTION_BY_SLUG": "collection:{slug}",
    "COLLECTION_BY_ID": "collection:id:{id}",
}


class CacheStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> Any:
        ...

    @abstractmethod
    async def set(self, key: str, data: Any, ttl: int = CACHE_DURATIONS["MEDIUM"]) -> None:
        ...

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        ...

    @abstractmethod
    async def invalidate_pattern(self, pattern: str) -> None:
        ...

    @abstractmethod
    async def get_stats(self) -> Optional[Dict[str, Any]]:
        """
        Server statistics, or None when they cannot be read:
          {totalKeys, memoryUsage, peakMemoryUsage, maxMemoryPolicy, evictedKeys, uptimeSeconds}
        """
        ...

    async def close(self) -> None:
        return None


def _info_field(raw: str, *names: str, default: str = "unknown") -> str:
    for name in names:
        match = re.search(rf"^{re.escape(name)}:(\S+)", raw, re.MULTILINE)
        if match:
            return match.group(1)
    return default


def _info_int(raw: str, name: str) -> int:
    value = _info_field(raw, name, default="0")
    return int(value) if value.isdigit() else 0


def _section_text(info: Any) -> str:
    # redis-py parses INFO into a dict; keep a text view so the parsing above works for both shapes.
    if isinstance(info, dict):
        return "\n".join(f"{k}:{v}" for k, v in info.items())
    return info or ""


class RedisCache(CacheStore):
    def __init__(self, redis_url: str):
        self._redis_url = redis_url
        self._redis = None

    @property
    def redis(self):
        if self._redis is None:
            import redis.asyncio as aioredis

            self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    async def get(self, key: str) -> Any:
        from redis.exceptions import RedisError

        try:
            cached = await self.redis.get(key)
            return json.loads(cached) if cached else None
        except (RedisError, ValueError) as exc:
            logger.error("Redis get error for key %s: %s", key, exc)
            return None

    async def set(self, key: str, data: Any, ttl: int = CACHE_DURATIONS["MEDIUM"]) -> None:
        from redis.exceptions import RedisError

        try:
            await self.redis.setex(key, ttl, json.dumps(data))
        except (RedisError, TypeError) as exc:
            logger.error("Redis set error for key %s: %s", key, exc)

    async def delete(self, *keys: str) -> None:
        from redis.exceptions import RedisError

        if not keys:
            return
        try:
            await self.redis.delete(*keys)
        except RedisError as exc:
            logger.error("Redis deletion error: %s", exc)

    async def invalidate_pattern(self, pattern: str) -> None:
        from redis.exceptions import RedisError

        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                await self.redis.delete(*keys)
        except RedisError as exc:
            logger.error("Redis pattern invalidation error for %s: %s", pattern, exc)

    async def get_stats(self) -> Optional[Dict[str, Any]]:
        from redis.exceptions import RedisError

        try:
            memory = _section_text(await self.redis.info("memory"))
            stats = _section_text(await self.redis.info("stats"))
            server = _section_text(await self.redis.info("server"))
            keys = await self.redis.dbsize()
        except RedisError as exc:
            logger.error("Redis stats error: %s", exc)
            return None

        return {
            "totalKeys": int(keys),
            "memoryUsage": _info_field(memory, "used_memory_human"),
            "peakMemoryUsage": _info_field(memory, "peak_memory_human", "used_memory_peak_human"),
            "maxMemoryPolicy": _info_field(memory, "maxmemory_policy"),
            "evictedKeys": _info_int(stats, "evicted_keys"),
            "uptimeSeconds": _info_int(server, "uptime_in_seconds"),
        }

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


class InMemoryCache(CacheStore):
    """Dict-backed store with TTLs, for development and tests."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._data: Dict[str, tuple[float, str]] = {}
        self._started = clock()

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [k for k, (expires, _) in self._data.items() if expires <= now]:
            del self._data[key]

    async def get(self, key: str) -> Any:
        self._purge_expired()
        entry = self._data.get(key)
        return json.loads(entry[1]) if entry else None

    async def set(self, key: str, data: Any, ttl: int = CACHE_DURATIONS["MEDIUM"]) -> None:
        self._data[key] = (self._clock() + ttl, json.dumps(data))

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def invalidate_pattern(self, pattern: str) -> None:
        for key in [k for k in self._data if fnmatchcase(k, pattern)]:
            del self._data[key]

    async def get_stats(self) -> Optional[Dict[str, Any]]:
        self._purge_expired()
        return {
            "totalKeys": len(self._data),
            "memoryUsage": "unknown",
            "peakMemoryUsage": "unknown",
            "maxMemoryPolicy": "unknown",
            "evictedKeys": 0,
            "uptimeSeconds": int(self._clock() - self._started),
        }
