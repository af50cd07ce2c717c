"""Tests for the TTL-bounded result cache."""

from __future__ import annotations

import pytest

from readyhub.cache import CacheEntryTooLarge, CacheError, ResultCache


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock):
    c = ResultCache(tmp_path / "cache.db", max_entry_bytes=64, clock=clock)
    yield c
    c.close()


def test_miss_returns_none(cache):
    assert cache.get("readiness_payload_v6") is None


def test_put_then_get(cache):
    cache.put("k", '{"a":1}', ttl_seconds=60)
    assert cache.get("k") == '{"a":1}'


def test_put_overwrites(cache):
    cache.put("k", "one", ttl_seconds=60)
    cache.put("k", "two", ttl_seconds=60)
    assert cache.get("k") == "two"


def test_entry_expires_after_ttl(cache, clock):
    cache.put("k", "v", ttl_seconds=60)
    clock.now += 59
    assert cache.get("k") == "v"
    clock.now += 1
    assert cache.get("k") is None


def test_expired_entry_is_removed(cache, clock):
    cache.put("k", "v", ttl_seconds=10)
    clock.now += 20
    cache.get("k")
    clock.now -= 20
    assert cache.get("k") is None


def test_expires_at(cache, clock):
    assert cache.expires_at("k") is None
    cache.put("k", "v", ttl_seconds=30)
    assert cache.expires_at("k") == clock.now + 30


def test_invalidate(cache):
    cache.put("k", "v", ttl_seconds=60)
    cache.invalidate("k")
    assert cache.get("k") is None


def test_invalidate_missing_key_is_noop(cache):
    cache.invalidate("absent")


def test_versioned_keys_are_independent(cache):
    cache.put("readiness_payload_v5", "old", ttl_seconds=60)
    assert cache.get("readiness_payload_v6") is None


def test_too_large_rejected(cache):
    with pytest.raises(CacheEntryTooLarge):
        cache.put("k", "x" * 65, ttl_seconds=60)
    assert cache.get("k") is None


def test_limit_counts_utf8_bytes(cache):
    # 32 characters, 64 bytes: at the limit.
    cache.put("k", "é" * 32, ttl_seconds=60)
    with pytest.raises(CacheEntryTooLarge):
        cache.put("k", "é" * 33, ttl_seconds=60)


def test_clear_returns_count(cache):
    cache.put("a", "1", ttl_seconds=60)
    cache.put("b", "2", ttl_seconds=60)
    assert cache.clear() == 2
    assert cache.get("a") is None


def test_entries_persist_across_instances(tmp_path, clock):
    first = ResultCache(tmp_path / "cache.db", clock=clock)
    first.put("k", "v", ttl_seconds=60)
    first.close()
    second = ResultCache(tmp_path / "cache.db", clock=clock)
    assert second.get("k") == "v"
    second.close()


def test_creates_parent_directory(tmp_path):
    c = ResultCache(tmp_path / "nested" / "dir" / "cache.db")
    c.close()
    assert (tmp_path / "nested" / "dir" / "cache.db").exists()


def test_unopenable_path_raises_cache_error(tmp_path):
    with pytest.raises(CacheError, match="Cannot open cache"):
        ResultCache(tmp_path)


def test_read_and_invalidate_failures_raise_cache_error(tmp_path):
    c = ResultCache(tmp_path / "cache.db")
    c.close()
    with pytest.raises(CacheError, match="Cannot read"):
        c.get("k")
    with pytest.raises(CacheError, match="Cannot invalidate"):
        c.invalidate("k")
