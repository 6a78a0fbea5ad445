"""
Cache store and hit/miss monitoring.

Like the queue client, the store and monitor are process-wide, created on
first use and injected into call sites.
"""

from typing import Optional

from ..config import get_settings
from .monitor import CacheMonitor, get_cache_insights
from .store import CACHE_DURATIONS, REDIS_KEYS, CacheStore, InMemoryCache, RedisCache

_cache: Optional[CacheStore] = None
_monitor: Optional[CacheMonitor] = None


def create_cache(settings) -> CacheStore:
    if settings.uses_memory_cache:
        return InMemoryCache()
    if not settings.redis_url:
        raise RuntimeError("Missing REDIS_HOST (or REDIS_URL) for the redis cache backend")
    return RedisCache(settings.redis_url)


def get_cache() -> CacheStore:
    global _cache
    if _cache is None:
        _cache = create_cache(get_settings())
    return _cache


def get_cache_monitor() -> CacheMonitor:
    global _monitor
    if _monitor is None:
        _monitor = CacheMonitor()
    return _monitor


def set_cache(cache: Optional[CacheStore], monitor: Optional[CacheMonitor] = None) -> None:
    global _cache, _monitor
    _cache = cache
    _monitor = monitor


async def close_cache() -> None:
    global _cache
    if _cache is not None:
        await _cache.close()
        _cache = None


__all__ = [
    "CACHE_DURATIONS",
    "REDIS_KEYS",
    "CacheMonitor",
    "CacheStore",
    "InMemoryCache",
    "RedisCache",
    "close_cache",
    "create_cache",
    "get_cache",
    "get_cache_insights",
    "get_cache_monitor",
    "set_cache",
]
