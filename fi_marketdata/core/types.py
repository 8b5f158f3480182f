"""
Data contracts passed between tiers.

Snapshots and points are frozen dataclasses; a tier hands out copies and never
keeps a reference into another tier's state.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Optional

CategoryMap = Dict[str, Decimal]

FALLBACK_SOURCE = "FALLBACK"


class DataCategory(enum.Enum):
    """Kind of reference data; also the category column in the durable store."""

    YIELD_CURVE = "YIELD_CURVE"
    CREDIT_SPREAD = "CREDIT_SPREAD"
    BENCHMARK_RATE = "BENCHMARK_RATE"
    INFLATION_EXPECTATION = "INFLATION_EXPECTATION"
    SECTOR_CREDIT_SPREAD = "SECTOR_CREDIT_SPREAD"
    LIQUIDITY_PREMIUM = "LIQUIDITY_PREMIUM"


@dataclass(frozen=True)
class YieldCurveSnapshot:
    """Immutable term structure for one date, tagged with the tier that produced it."""

    date: date
    source: str
    yields: Mapping[str, Decimal] = field(default_factory=dict)
    last_updated: Optional[date] = None
    region: str = "EUR"

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "yields", MappingProxyType(dict(self.yields)))
        if self.last_updated is None:
            object.__setattr__(self, "last_updated", self.date)

    def is_valid(self) -> bool:
        return bool(self.yields)

    def with_source(self, source: str) -> "YieldCurveSnapshot":
        return YieldCurveSnapshot(
            date=self.date,
            source=source,
            yields=self.yields,
            last_updated=self.last_updated,
            region=self.region,
        )


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One observation for a (category, key) pair."""

    category: DataCategory
    key: str
    value: Decimal
    observed_date: date
    source: str
    currency: Optional[str] = None


__all__ = [
    "CategoryMap",
    "DataCategory",
    "FALLBACK_SOURCE",
    "TimeSeriesPoint",
    "YieldCurveSnapshot",
]
