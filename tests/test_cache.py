"""
Fast cache tier: TTL expiry, size bound, hit/miss accounting, compute-on-miss.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from fi_marketdata.cache import (
    POOL_REFERENCE,
    POOL_TIME_SERIES,
    POOL_YIELD_CURVES,
    CachePool,
    TieredCache,
)


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


class TestCachePool:
    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        pool = CachePool("p", ttl_seconds=10, max_size=5, clock=clock)
        pool.put("k", 1)
        clock.t = 9.9
        assert pool.get("k") == 1
        clock.t = 10.0
        assert pool.get("k") is None
        assert len(pool) == 0

    def test_oldest_entry_evicted_when_full(self):
        pool = CachePool("p", ttl_seconds=100, max_size=2, clock=FakeClock())
        pool.put("a", 1)
        pool.put("b", 2)
        pool.put("c", 3)
        assert pool.get("a") is None
        assert pool.get("b") == 2
        assert pool.get("c") == 3

    def test_stats_count_hits_and_misses(self):
        pool = CachePool("p", ttl_seconds=100, max_size=2, clock=FakeClock())
        pool.get("x")
        pool.put("x", 1)
        pool.get("x")
        stats = pool.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 1

    def test_non_positive_size_rejected(self):
        with pytest.raises(ValueError):
            CachePool("p", ttl_seconds=1, max_size=0)


class TestTieredCache:
    def test_default_pools(self):
        cache = TieredCache()
        assert set(cache.pool_names) == {POOL_YIELD_CURVES, POOL_TIME_SERIES, POOL_REFERENCE}
        stats = cache.stats()
        assert stats[POOL_YIELD_CURVES]["ttl_seconds"] == 24 * 3600
        assert stats[POOL_TIME_SERIES]["max_size"] == 200
        assert stats[POOL_REFERENCE]["ttl_seconds"] == 4 * 3600

    def test_pool_overrides_merge_with_defaults(self):
        cache = TieredCache({POOL_REFERENCE: {"max_size": 3}})
        stats = cache.stats()[POOL_REFERENCE]
        assert stats["max_size"] == 3
        assert stats["ttl_seconds"] == 4 * 3600

    def test_compute_runs_once_while_fresh(self):
        cache = TieredCache()
        calls = []

        def compute():
            calls.append(1)
            return {"10Y": 3}

        assert cache.get_or_compute(POOL_REFERENCE, ("k",), compute) == {"10Y": 3}
        assert cache.get_or_compute(POOL_REFERENCE, ("k",), compute) == {"10Y": 3}
        assert len(calls) == 1

    def test_uncacheable_result_not_stored(self):
        cache = TieredCache()
        calls = []

        def compute():
            calls.append(1)
            return []

        cache.get_or_compute(POOL_TIME_SERIES, "s", compute, cacheable=bool)
        cache.get_or_compute(POOL_TIME_SERIES, "s", compute, cacheable=bool)
        assert len(calls) == 2

    def test_unknown_pool_raises_key_error(self):
        with pytest.raises(KeyError, match="Unknown cache pool"):
            TieredCache().pool("nope")

    def test_clear_all_returns_entry_count(self):
        cache = TieredCache()
        cache.get_or_compute(POOL_YIELD_CURVES, 1, lambda: "a")
        cache.get_or_compute(POOL_REFERENCE, 2, lambda: "b")
        assert cache.clear_all() == 2
        assert all(s["size"] == 0 for s in cache.stats().values())


class TestSharedAcrossThreads:
    def test_concurrent_get_or_compute_and_put(self):
        cache = TieredCache({POOL_REFERENCE: {"ttl_seconds": 100, "max_size": 16}})
        pool = cache.pool(POOL_REFERENCE)

        def work(i: int):
            key = i % 24
            value = cache.get_or_compute(POOL_REFERENCE, key, lambda: key * 10)
            pool.put(("extra", i % 5), i)
            return key, value

        with ThreadPoolExecutor(max_workers=12) as ex:
            results = list(ex.map(work, range(600)))

        assert all(value == key * 10 for key, value in results)
        stats = pool.stats()
        assert stats["size"] <= 16
        assert stats["hits"] + stats["misses"] == 600

    def test_concurrent_puts_respect_max_size(self):
        pool = CachePool("p", ttl_seconds=100, max_size=8)

        def work(i: int) -> None:
            pool.put(i % 40, i)
            pool.get((i + 1) % 40)

        with ThreadPoolExecutor(max_workers=16) as ex:
            list(ex.map(work, range(800)))

        assert len(pool) <= 8
        assert pool.stats()["hits"] + pool.stats()["misses"] == 800
