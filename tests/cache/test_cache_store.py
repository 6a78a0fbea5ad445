import pytest

from ziron.cache import InMemoryCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_values_expire_after_ttl():
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)

    await cache.set("collection:summer", {"id": "c1"}, 60)
    assert await cache.get("collection:summer") == {"id": "c1"}

    clock.now += 61
    assert await cache.get("collection:summer") is None


@pytest.mark.asyncio
async def test_delete_and_pattern_invalidation():
    cache = InMemoryCache()
    await cache.set("collection:a", 1)
    await cache.set("collection:b", 2)
    await cache.set("collection:id:1", 3)
    await cache.set("collections:all", [1, 2])

    await cache.delete("collection:a", "never-set")
    assert await cache.get("collection:a") is None

    await cache.invalidate_pattern("collection:id:*")
    assert await cache.get("collection:id:1") is None
    assert await cache.get("collection:b") == 2
    assert await cache.get("collections:all") == [1, 2]


@pytest.mark.asyncio
async def test_stats_count_live_keys():
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)
    await cache.set("short", 1, 10)
    await cache.set("long", 1, 1000)
    clock.now += 20

    stats = await cache.get_stats()

    assert stats["totalKeys"] == 1
    assert stats["evictedKeys"] == 0
    assert stats["uptimeSeconds"] == 20


def test_cache_backend_follows_queue_backend(monkeypatch):
    from ziron.config import Settings

    monkeypatch.delenv("CACHE_BACKEND", raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")

    assert Settings(database_url="sqlite://", queue_backend="memory").uses_memory_cache is True
    assert Settings(database_url="sqlite://", queue_backend="redis", cache_backend="memory").uses_memory_cache is True
    assert Settings(database_url="sqlite://", queue_backend="redis").uses_memory_cache is False


def test_redis_url_derived_from_host(monkeypatch):
    from ziron.config import Settings

    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")

    settings = Settings(database_url="sqlite://", redis_host="cache.internal", redis_port=6380)
    assert settings.redis_url == "redis://cache.internal:6380"
