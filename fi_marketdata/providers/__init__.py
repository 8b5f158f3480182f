"""
Provider layer for external market-data sources.

Concrete providers implement MarketDataProvider; the ProviderChain tries a
primary and an optional secondary in order and absorbs their failures.
"""

from __future__ import annotations

from .alternative import AlternativeDataProvider
from .base import (
    BaseMarketDataProvider,
    MarketDataProvider,
    ProviderStats,
    Unsupported,
    parse_yield_value,
)
from .chain import ProviderChain, ProviderResult
from .fanout import fetch_concurrently
from .fred import FredProvider
from .registry import ProviderRegistry
from .resilience import RetryConfig, resilient_call

__all__ = [
    "AlternativeDataProvider",
    "BaseMarketDataProvider",
    "FredProvider",
    "MarketDataProvider",
    "ProviderChain",
    "ProviderRegistry",
    "ProviderResult",
    "ProviderStats",
    "RetryConfig",
    "Unsupported",
    "fetch_concurrently",
    "parse_yield_value",
    "resilient_call",
]
