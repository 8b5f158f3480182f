"""
Provider-level retry with exponential backoff.

The resolution pipeline itself never retries; a provider may wrap its own
HTTP calls with resilient_call(). Only transport failures and retryable HTTP
status codes are retried; anything else is raised on the first attempt.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import requests

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry with exponential backoff. max_retries counts total attempts."""
    max_retries: int = 1
    base_delay_s: float = 0.5
    max_delay_s: float = 10.0
    backoff_factor: float = 1.5
    retry_on_status_codes: tuple[int, ...] = (429, 500, 502, 503, 504)

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay_s * (self.backoff_factor ** (attempt - 1)), self.max_delay_s)


def is_retryable(exc: BaseException, cfg: RetryConfig) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code in cfg.retry_on_status_codes
    return False


def resilient_call(
    func: Callable[..., T],
    *args: Any,
    retry_config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Execute a provider call with retry on transient HTTP failures.

    Raises the last exception if all attempts are exhausted.
    """
    cfg = retry_config or RetryConfig()
    attempts = max(1, cfg.max_retries)

    last_err: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            last_err = exc
            if not is_retryable(exc, cfg):
                raise
            logger.debug(
                "Attempt %d/%d failed: %s: %s", attempt, attempts, type(exc).__name__, exc
            )
            if attempt < attempts:
                sleep(cfg.delay_for(attempt))

    raise last_err  # type: ignore[misc]
