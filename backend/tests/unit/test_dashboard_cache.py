from carbonledger.services.dashboard import invalidate_owner


async def test_get_or_set_builds_once(memory_cache, memory_redis):
    calls = []

    async def build():
        calls.append(1)
        return {"total_emissions": 150.0}

    first = await memory_cache.get_or_set("1:overview:2024", build, expire=60)
    second = await memory_cache.get_or_set("1:overview:2024", build, expire=60)

    assert first == second == {"total_emissions": 150.0}
    assert len(calls) == 1
    assert "dashboard:1:overview:2024" in memory_redis.store


async def test_invalidate_owner_leaves_other_owners(memory_cache, memory_redis):
    await memory_cache.set("1:overview:2024", {"owner": 1})
    await memory_cache.set("1:chart:2024", {"owner": 1})
    await memory_cache.set("11:overview:2024", {"owner": 11})

    await invalidate_owner(memory_cache, 1)

    assert set(memory_redis.store) == {"dashboard:11:overview:2024"}
    assert await memory_cache.get("11:overview:2024") == {"owner": 11}


async def test_unreachable_redis_degrades_to_miss(unreachable_cache):
    async def build():
        return {"total_emissions": 42.0}

    assert await unreachable_cache.get("1:overview:2024") is None
    assert await unreachable_cache.set("1:overview:2024", {"x": 1}) is False
    assert await unreachable_cache.clear_matching("1:*") is False
    assert await unreachable_cache.get_or_set("1:overview:2024", build) == {"total_emissions": 42.0}


async def test_invalidate_without_cache_is_noop():
    await invalidate_owner(None, 1)
