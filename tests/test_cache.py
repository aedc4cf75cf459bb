try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.clients.redis_store import RedisStore
from app.services.cache import KeyValueCache


@pytest.mark.asyncio
async def test_values_roundtrip_under_namespaced_keys(fake_redis) -> None:
    cache = RedisStore(fake_redis).cache("cache:products")

    await cache.set("item:1", {"name": "Apples", "price": "2.50"}, ttl_seconds=30)

    assert await cache.get("item:1") == {"name": "Apples", "price": "2.50"}
    assert await fake_redis.get("cache:products:item:1") is not None
    assert await fake_redis.ttl("cache:products:item:1") == 30
    assert await cache.exists("item:1") is True


@pytest.mark.asyncio
async def test_caches_sharing_a_store_do_not_collide(fake_redis) -> None:
    tokens = KeyValueCache(fake_redis, "token")
    products = KeyValueCache(fake_redis, "cache:products")

    await tokens.set("shared", "a")
    await products.set("shared", "b")

    assert await tokens.get("shared") == "a"
    assert await products.get("shared") == "b"


@pytest.mark.asyncio
async def test_undecodable_entry_reads_as_miss(fake_redis) -> None:
    cache = KeyValueCache(fake_redis, "cache")
    await fake_redis.set("cache:broken", "{not json")

    assert await cache.get("broken") is None


@pytest.mark.asyncio
async def test_delete_pattern_only_touches_matching_keys(fake_redis) -> None:
    cache = KeyValueCache(fake_redis, "cache:products")
    other = KeyValueCache(fake_redis, "token")
    await cache.set("list:a", [1])
    await cache.set("list:b", [2])
    await cache.set("item:1", {"id": "1"})
    await other.set("list:a", "keep")

    await cache.delete_pattern("list:*")

    assert await cache.get("list:a") is None
    assert await cache.get("list:b") is None
    assert await cache.get("item:1") == {"id": "1"}
    assert await other.get("list:a") == "keep"


@pytest.mark.asyncio
async def test_entries_expire_after_ttl(fake_redis) -> None:
    cache = KeyValueCache(fake_redis, "cache")
    await cache.set("k", "v", ttl_seconds=5)

    fake_redis.advance(6)

    assert await cache.get("k") is None
    assert await cache.exists("k") is False


@pytest.mark.asyncio
async def test_store_outage_degrades_to_miss_and_noop(unavailable_redis) -> None:
    cache = KeyValueCache(unavailable_redis, "cache")

    assert await cache.get("k") is None
    assert await cache.exists("k") is False
    await cache.set("k", {"a": 1}, ttl_seconds=10)
    await cache.delete("k")
    await cache.delete_pattern("*")


@pytest.mark.asyncio
async def test_ping_reports_store_health(fake_redis, unavailable_redis) -> None:
    assert await RedisStore(fake_redis).ping() is True
    assert await RedisStore(unavailable_redis).ping() is False
