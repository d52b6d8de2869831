# This project was developed with assistance from AI tools.
"""Tests for the TTL cache, cache keys and the cached schema source."""

from unittest.mock import AsyncMock

import pytest

from contextual.core.errors import SchemaUnavailableError
from contextual.schemas.schema import SchemaSnapshot
from contextual.services.cache import MemoryCache, make_cache_key
from contextual.services.sources import CachedSchemaSource, StaticSchemaSource


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_cache_key_ignores_param_order():
    """Should fingerprint equal params identically regardless of key order."""
    a = make_cache_key("p", {"model": "gpt-4o", "prompt": "hi"})
    b = make_cache_key("p", {"prompt": "hi", "model": "gpt-4o"})
    assert a == b
    assert a.startswith("p_")


def test_cache_key_changes_with_any_param():
    """Should produce a different key when any component changes."""
    base = {"provider": "openai", "model": "gpt-4o", "modified": "2026-01-10 09:00:00"}
    changed = {**base, "modified": "2026-01-10 09:00:01"}
    assert make_cache_key("p", base) != make_cache_key("p", changed)


def test_cache_key_never_contains_raw_values():
    """Should hash params so prompts and keys never appear in the cache key."""
    key = make_cache_key("p", {"prompt": "secret prompt text"})
    assert "secret" not in key


def test_memory_cache_get_set():
    """Should return stored values until they expire."""
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    cache.set("k", {"v": 1}, ttl=60)

    assert cache.get("k") == {"v": 1}
    clock.now += 59
    assert cache.get("k") == {"v": 1}
    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_memory_cache_zero_ttl_disables_write():
    """Should not store anything when ttl is zero or negative."""
    cache = MemoryCache()
    cache.set("k", "v", ttl=0)
    cache.set("j", "v", ttl=-5)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_memory_cache_sweeps_expired_entries_on_write():
    """Should drop expired entries that are never read again once the sweep interval passes."""
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    for i in range(1000):
        cache.set(f"prompt-{i}", i, ttl=300)
    assert len(cache) == 1000

    clock.now = 10_000.0
    cache.set("fresh", "v", ttl=300)

    assert len(cache) == 1
    assert cache.get("fresh") == "v"


def test_memory_cache_keeps_live_entries_between_sweeps():
    """Should not sweep live entries, nor expired ones before the interval elapses."""
    clock = FakeClock()
    cache = MemoryCache(clock=clock, sweep_interval=60)
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=600)

    clock.now += 10
    cache.set("other", 3, ttl=600)
    assert len(cache) == 3

    clock.now += 60
    cache.set("another", 4, ttl=600)
    assert len(cache) == 3
    assert cache.get("long") == 2


def test_memory_cache_evicts_soonest_expiry_when_full():
    """Should stay within max_entries by evicting the entry that expires first."""
    clock = FakeClock()
    cache = MemoryCache(clock=clock, max_entries=3)
    cache.set("a", 1, ttl=100)
    cache.set("b", 2, ttl=10)
    cache.set("c", 3, ttl=200)

    cache.set("d", 4, ttl=50)

    assert len(cache) == 3
    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("d") == 4


def test_memory_cache_overwrite_when_full_evicts_nothing():
    """Should replace an existing key in place without evicting another entry."""
    cache = MemoryCache(clock=FakeClock(), max_entries=2)
    cache.set("a", 1, ttl=100)
    cache.set("b", 2, ttl=100)
    cache.set("a", 10, ttl=100)

    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_memory_cache_delete_and_clear():
    """Should drop single entries and everything."""
    cache = MemoryCache()
    cache.set("a", 1, ttl=60)
    cache.set("b", 2, ttl=60)
    cache.delete("a")
    assert cache.get("a") is None
    cache.clear()
    assert cache.get("b") is None


@pytest.mark.asyncio
async def test_cached_schema_source_reads_inner_once(snapshot):
    """Should serve the snapshot from cache within the TTL."""
    inner = AsyncMock()
    inner.get_schema_snapshot = AsyncMock(return_value=snapshot)
    source = CachedSchemaSource(inner, MemoryCache(), ttl=300)

    assert await source.get_schema_snapshot() == snapshot
    assert await source.get_schema_snapshot() == snapshot
    inner.get_schema_snapshot.assert_awaited_once()


@pytest.mark.asyncio
async def test_static_schema_source_reads_yaml(tmp_path):
    """Should load a YAML schema export from disk."""
    path = tmp_path / "schema.yaml"
    path.write_text(
        "post_types:\n  - slug: plots\n    label: Plots\n"
        "generated_at: '2026-01-28T12:00:00+00:00'\n"
    )
    snapshot = await StaticSchemaSource(path=path).get_schema_snapshot()
    assert snapshot.post_type_slugs == ["plots"]
    assert snapshot.generated_at == "2026-01-28T12:00:00+00:00"


@pytest.mark.asyncio
async def test_static_schema_source_missing_file(tmp_path):
    """Should raise SchemaUnavailableError when the export cannot be read."""
    with pytest.raises(SchemaUnavailableError):
        await StaticSchemaSource(path=tmp_path / "missing.yaml").get_schema_snapshot()


@pytest.mark.asyncio
async def test_static_schema_source_without_path_is_empty():
    """Should return an empty, timestamped snapshot when nothing is configured."""
    snapshot = await StaticSchemaSource().get_schema_snapshot()
    assert snapshot.post_types == []
    assert snapshot.generated_at
    assert isinstance(snapshot, SchemaSnapshot)
