"""
Static fallback resolver: the terminal tier for every non-time-series query.

Never raises. Unknown or missing keys are replaced by a default key (EUR for
regions, BBB for ratings, 10Y for tenors); a missing sub-value falls back to a
last-resort constant.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Optional

from . import fallback_data as tables
from . import timeutils
from .core.types import FALLBACK_SOURCE, CategoryMap, YieldCurveSnapshot
from .core.validation import normalize_rating

logger = logging.getLogger(__name__)

_ONE = Decimal("1")


def _key(value: Optional[str]) -> str:
    return str(value).strip().upper() if value is not None else ""


class StaticFallbackResolver:
    """Read-only view over the reference tables in fallback_data."""

    def _region_table(
        self, table: Mapping[str, Mapping[str, Decimal]], region: Optional[str]
    ) -> tuple[str, Mapping[str, Decimal]]:
        r = _key(region)
        if r in table:
            return r, table[r]
        return tables.DEFAULT_REGION, table[tables.DEFAULT_REGION]

    def yield_curve(self, region: Optional[str] = None, on_date: Optional[date] = None) -> YieldCurveSnapshot:
        resolved, curve = self._region_table(tables.YIELD_CURVES, region)
        d = on_date or timeutils.today()
        logger.info("Using fallback yield curve for region %s and date %s", resolved, d)
        return YieldCurveSnapshot(
            date=d,
            source=FALLBACK_SOURCE,
            yields=dict(curve),
            last_updated=timeutils.today(),
            region=resolved,
        )

    def yield_curves(self, dates: Iterable[date], region: Optional[str] = None) -> List[YieldCurveSnapshot]:
        return [self.yield_curve(region, d) for d in dates]

    def yield_for_tenor(self, tenor: Optional[str], region: Optional[str] = None) -> Decimal:
        _, curve = self._region_table(tables.YIELD_CURVES, region)
        t = _key(tenor) or tables.DEFAULT_TENOR
        value = curve.get(t)
        if value is None:
            value = curve.get(tables.LAST_RESORT_TENOR, tables.LAST_RESORT_YIELD)
        return value

    def credit_spreads(self) -> CategoryMap:
        logger.info("Using fallback credit spread data")
        return dict(tables.CREDIT_SPREADS)

    def credit_spread_for_rating(self, rating: Optional[str]) -> Decimal:
        bucket = normalize_rating(rating)
        spread = tables.CREDIT_SPREADS.get(bucket) if bucket else None
        if spread is None:
            spread = tables.CREDIT_SPREADS.get(tables.DEFAULT_RATING, tables.LAST_RESORT_SPREAD)
        return spread

    def benchmark_rates(self) -> CategoryMap:
        logger.info("Using fallback benchmark rate data")
        return dict(tables.BENCHMARK_RATES)

    def benchmark_rate_for_region(self, region: Optional[str]) -> Decimal:
        rate = tables.BENCHMARK_RATES.get(_key(region))
        if rate is None:
            rate = tables.BENCHMARK_RATES.get(tables.DEFAULT_REGION, tables.LAST_RESORT_BENCHMARK)
        return rate

    def inflation_expectations(self, region: Optional[str]) -> CategoryMap:
        resolved, table = self._region_table(tables.INFLATION_EXPECTATIONS, region)
        logger.info("Using fallback inflation expectations for region %s", resolved)
        return dict(table)

    def liquidity_premiums(self) -> CategoryMap:
        logger.info("Using fallback liquidity premium data")
        return dict(tables.LIQUIDITY_PREMIUMS)

    def sector_multiplier(self, sector: Optional[str]) -> Decimal:
        return tables.SECTOR_MULTIPLIERS.get(_key(sector), _ONE)

    def sector_credit_data(self, sector: Optional[str]) -> CategoryMap:
        """Base spreads scaled by the sector multiplier, rounded half-up to whole bp."""
        logger.info("Using fallback credit spreads for sector %s", sector)
        if not _key(sector):
            return dict(tables.CREDIT_SPREADS)
        factor = self.sector_multiplier(sector)
        return {
            rating: (spread * factor).quantize(_ONE, rounding=ROUND_HALF_UP)
            for rating, spread in tables.CREDIT_SPREADS.items()
        }
