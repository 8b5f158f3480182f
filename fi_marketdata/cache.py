"""
Fast cache tier: named in-memory pools with per-pool TTL and max size.

The service calls get_or_compute() directly for each operation, so the whole
tier chain is visible in service.py. Entries are never invalidated by durable
store writes; staleness up to the pool TTL is accepted.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

POOL_YIELD_CURVES = "yield_curves"
POOL_TIME_SERIES = "time_series"
POOL_REFERENCE = "reference"

DEFAULT_POOLS: Dict[str, Dict[str, float]] = {
    POOL_YIELD_CURVES: {"ttl_seconds": 24 * 3600, "max_size": 500},
    POOL_TIME_SERIES: {"ttl_seconds": 72 * 3600, "max_size": 200},
    POOL_REFERENCE: {"ttl_seconds": 4 * 3600, "max_size": 1000},
}


class CachePool:
    """Thread-safe TTL map; evicts expired entries on read and the oldest insert when full."""

    def __init__(
        self,
        name: str,
        ttl_seconds: float,
        max_size: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive for pool {name!r}")
        self.name = name
        self.ttl_seconds = float(ttl_seconds)
        self.max_size = int(max_size)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[Hashable, Tuple[Any, float]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = (value, self._clock() + self.ttl_seconds)

    def clear(self) -> int:
        with self._lock:
            n = len(self._entries)
            self._entries.clear()
            return n

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
            }


class TieredCache:
    """
    Registry of named CachePools.

    Usage:
        cache = TieredCache()
        curve = cache.get_or_compute("yield_curves", ("latest",), resolve_latest)
    """

    def __init__(
        self,
        pools: Optional[Dict[str, Dict[str, Any]]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        spec = dict(DEFAULT_POOLS)
        for name, overrides in (pools or {}).items():
            spec[name] = {**spec.get(name, {}), **overrides}
        self._pools: Dict[str, CachePool] = {
            name: CachePool(name, cfg["ttl_seconds"], cfg["max_size"], clock=clock)
            for name, cfg in spec.items()
        }

    @property
    def pool_names(self) -> list[str]:
        return list(self._pools)

    def pool(self, name: str) -> CachePool:
        try:
            return self._pools[name]
        except KeyError:
            raise KeyError(f"Unknown cache pool '{name}'. Available: {list(self._pools)}") from None

    def get_or_compute(
        self,
        pool_name: str,
        key: Hashable,
        compute: Callable[[], T],
        cacheable: Callable[[T], bool] = lambda value: value is not None,
    ) -> T:
        """
        Return the cached value for key, or call compute() and store its result.

        compute() runs outside the pool lock; two concurrent misses for the same
        key may both compute, and the later insert wins.
        """
        pool = self.pool(pool_name)
        cached = pool.get(key)
        if cached is not None:
            logger.debug("Cache hit %s %r", pool_name, key)
            return cached
        value = compute()
        if cacheable(value):
            pool.put(key, value)
        return value

    def clear(self, pool_name: str) -> int:
        n = self.pool(pool_name).clear()
        logger.info("Cleared cache pool %s (%d entries)", pool_name, n)
        return n

    def clear_all(self) -> int:
        return sum(self.clear(name) for name in self._pools)

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: pool.stats() for name, pool in self._pools.items()}
