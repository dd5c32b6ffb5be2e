"""Unit tests for the Redis cache store against an in-process fake Redis server."""

import fakeredis
import pytest
import pytest_asyncio

from services.cache.CacheService import CacheService
from shared.clients.cache.CacheClientManager import CacheClientManager
from shared.clients.cache.redis.CacheClientRedis import CacheClientRedis
from shared.models.errors import CacheUnavailable


@pytest_asyncio.fixture
async def redis_store(helper_config, monkeypatch):
    monkeypatch.setenv("CACHE_REDIS_SCAN_COUNT", "2")
    store = CacheClientRedis(helper_config=helper_config, client=fakeredis.FakeAsyncRedis(decode_responses=True))
    await store.boot()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def unreachable_store(helper_config):
    server = fakeredis.FakeServer()
    server.connected = False
    store = CacheClientRedis(helper_config=helper_config, client=fakeredis.FakeAsyncRedis(server=server))
    await store.boot()
    yield store
    await store.close()


def test_manager_selects_redis_engine(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("CACHE_ENGINE", "redis")
    monkeypatch.setenv("CACHE_REDIS_URL", "redis://cache.test:6379/2")

    store = CacheClientManager(helper_config=helper_config).get_client()

    assert isinstance(store, CacheClientRedis)
    assert store.get_engine_name() == "redis"


@pytest.mark.asyncio
async def test_values_round_trip_with_expiry(redis_store) -> None:
    await redis_store.do_set("search:fulltext:a:20:0:all", '{"total": 1}', ttl=300)
    await redis_store.do_set("pinned", "1")

    assert await redis_store.do_get("search:fulltext:a:20:0:all") == '{"total": 1}'
    assert 0 < await redis_store._client.pttl("search:fulltext:a:20:0:all") <= 300_000
    assert await redis_store._client.pttl("pinned") == -1
    assert await redis_store.do_get("missing") is None


@pytest.mark.asyncio
async def test_non_positive_ttl_removes_the_entry(redis_store) -> None:
    await redis_store.do_set("key", "old")

    await redis_store.do_set("key", "new", ttl=0)

    assert not await redis_store.do_exists("key")


@pytest.mark.asyncio
async def test_delete_pattern_scans_in_batches(redis_store) -> None:
    for index in range(5):
        await redis_store.do_set(f"search:hybrid:q{index}:20:0:all", "x")
    await redis_store.do_set("session:1", "keep")

    deleted = await redis_store.do_delete_pattern("search:*")

    assert deleted == 5
    assert await redis_store.do_exists("session:1")
    assert await redis_store.do_delete_pattern("search:*") == 0


@pytest.mark.asyncio
async def test_delete_and_flush(redis_store) -> None:
    await redis_store.do_set("a", "1")
    await redis_store.do_set("b", "2")

    assert await redis_store.do_delete("a") is True
    assert await redis_store.do_delete("a") is False
    await redis_store.do_flush()
    assert not await redis_store.do_exists("b")


@pytest.mark.asyncio
async def test_unreachable_server_raises_cache_unavailable(unreachable_store) -> None:
    with pytest.raises(CacheUnavailable, match="Redis GET failed"):
        await unreachable_store.do_get("key")
    with pytest.raises(CacheUnavailable):
        await unreachable_store.do_delete_pattern("search:*")


@pytest.mark.asyncio
async def test_not_booted_raises_cache_unavailable(helper_config) -> None:
    store = CacheClientRedis(helper_config=helper_config)

    with pytest.raises(CacheUnavailable, match="not initialised"):
        await store.do_exists("key")


@pytest.mark.asyncio
async def test_cache_layer_degrades_when_redis_is_down(helper_config, unreachable_store) -> None:
    cache = CacheService(helper_config=helper_config, cache_client=unreachable_store)

    assert await cache.set("key", {"value": 1}) is False
    assert await cache.get("key") is None
    assert await cache.delete_pattern("search:*") == 0
    assert cache.get_stats()["misses"] == 1
