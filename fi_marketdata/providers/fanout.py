"""
Wait-all concurrent fetch used for per-tenor (and per-date) fan-out.

Each key runs as its own task. The caller blocks until every task finishes or
the timeout expires; a task that raised, returned None, or did not finish in
time is logged and left out of the result. Results are merged on the calling
thread only.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Hashable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def fetch_concurrently(
    keys: Iterable[K],
    fetch: Callable[[K], Optional[V]],
    timeout_s: float,
    max_workers: Optional[int] = None,
    label: str = "fan-out",
) -> Dict[K, V]:
    """
    Run fetch(key) for every key concurrently and return {key: value} for successes.

    max_workers defaults to one thread per key.
    """
    key_list = list(dict.fromkeys(keys))
    if not key_list:
        return {}
    workers = max_workers or len(key_list)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fanout")
    try:
        futures: Dict[Future, K] = {executor.submit(fetch, key): key for key in key_list}
        done, not_done = wait(futures, timeout=timeout_s)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    results: Dict[K, V] = {}
    for future in done:
        key = futures[future]
        try:
            value = future.result()
        except Exception as exc:
            logger.warning("%s: %s failed: %s: %s", label, key, type(exc).__name__, exc)
            continue
        if value is None:
            logger.warning("%s: %s returned no data", label, key)
            continue
        results[key] = value
    for future in not_done:
        logger.warning("%s: %s timed out after %.1fs", label, futures[future], timeout_s)
    if len(results) < len(key_list):
        logger.info("%s: %d/%d succeeded", label, len(results), len(key_list))
    return results
