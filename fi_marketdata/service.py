"""
Resolution orchestrator: the public entry point for market reference data.

Every query walks the same tiers, in order:
    fast cache -> durable store -> provider chain (write-back) -> static fallback

Arguments are validated once, here, before any tier runs; InvalidInputError
is the only error a well-formed deployment surfaces to callers. Time series
skip the fallback tier and may come back empty.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, List, Optional

from . import config as app_config
from . import timeutils
from .cache import POOL_REFERENCE, POOL_TIME_SERIES, POOL_YIELD_CURVES, TieredCache
from .core.errors import InvalidInputError
from .core.types import CategoryMap, DataCategory, TimeSeriesPoint, YieldCurveSnapshot
from .core.validation import (
    normalize_rating,
    normalize_region,
    validate_date,
    validate_date_range,
    validate_dates,
    validate_days_to_keep,
    validate_region,
    validate_sector,
    validate_tenor,
)
from .db.store import MarketDataStore
from .fallback import StaticFallbackResolver
from .fallback_data import DEFAULT_RATING, DEFAULT_REGION
from .providers.chain import ProviderChain, ProviderResult
from .providers.defaults import create_provider_chain

logger = logging.getLogger(__name__)

CURVE_REGION = DEFAULT_REGION


class MarketDataService:
    """
    Tiered resolver for yield curves, spreads, rates, inflation and premiums.

    Collaborators are passed in explicitly; create_market_data_service() wires
    them from config.
    """

    def __init__(
        self,
        chain: ProviderChain,
        store: MarketDataStore,
        cache: Optional[TieredCache] = None,
        fallback: Optional[StaticFallbackResolver] = None,
        series_tolerance_days: int = 7,
        latest_max_age_days: int = 1,
    ) -> None:
        self._chain = chain
        self._store = store
        self._cache = cache or TieredCache()
        self._fallback = fallback or StaticFallbackResolver()
        self._series_tolerance = timedelta(days=series_tolerance_days)
        self._latest_max_age = timedelta(days=latest_max_age_days)

    @property
    def cache(self) -> TieredCache:
        return self._cache

    @property
    def store(self) -> MarketDataStore:
        return self._store

    # ------------------------------------------------------------------
    # Yield curves
    # ------------------------------------------------------------------

    def latest_yield_curve(self) -> YieldCurveSnapshot:
        today = timeutils.today()
        return self._cache.get_or_compute(
            POOL_YIELD_CURVES, ("latest", today), lambda: self._resolve_curve(None, today)
        )

    def historical_yield_curve(self, on_date: date) -> YieldCurveSnapshot:
        d = validate_date(on_date)
        return self._cache.get_or_compute(
            POOL_YIELD_CURVES, ("historical", d), lambda: self._resolve_curve(d, d)
        )

    def _resolve_curve(self, on_date: Optional[date], as_of: date) -> YieldCurveSnapshot:
        floor = as_of - (self._latest_max_age if on_date is None else self._series_tolerance)
        stored = self._store.latest_as_of(
            DataCategory.YIELD_CURVE, as_of, scope=CURVE_REGION, not_before=floor
        )
        if stored is not None:
            logger.info("Yield curve as of %s served from durable store (%s)", as_of, stored.observed_date)
            return stored.to_snapshot()

        if on_date is None:
            fetched = self._chain.fetch_latest_curve()
        else:
            fetched = self._chain.fetch_historical_curve(on_date)
        if fetched is not None:
            self._store.store_snapshot(fetched)
            return fetched

        return self._fallback.yield_curve(CURVE_REGION, as_of)

    def yield_curves_for_dates(self, dates: List[date]) -> List[YieldCurveSnapshot]:
        """One snapshot per requested date, in request order."""
        checked = validate_dates(dates)
        return list(self._cache.get_or_compute(
            POOL_YIELD_CURVES, ("batch", tuple(checked)), lambda: self._resolve_curves(checked)
        ))

    def _resolve_curves(self, dates: List[date]) -> List[YieldCurveSnapshot]:
        unique = list(dict.fromkeys(dates))
        resolved: Dict[date, YieldCurveSnapshot] = {}
        for d in unique:
            stored = self._store.exact_date(DataCategory.YIELD_CURVE, d, scope=CURVE_REGION)
            if stored is not None:
                resolved[d] = stored.to_snapshot()

        missing = [d for d in unique if d not in resolved]
        if missing:
            fetched = self._chain.fetch_curves_for_dates(missing) or []
            wanted = set(missing)
            for snapshot in fetched:
                if snapshot.date in wanted and snapshot.yields:
                    self._store.store_snapshot(snapshot)
                    resolved[snapshot.date] = snapshot

        leftover = [d for d in unique if d not in resolved]
        if leftover:
            logger.info("Using fallback curves for %d of %d dates", len(leftover), len(unique))
            for snapshot in self._fallback.yield_curves(leftover, CURVE_REGION):
                resolved[snapshot.date] = snapshot
        return [resolved[d] for d in dates]

    # ------------------------------------------------------------------
    # Time series (no fallback tier)
    # ------------------------------------------------------------------

    def yield_time_series(self, tenor: str, start: date, end: date) -> List[TimeSeriesPoint]:
        t = validate_tenor(tenor)
        s, e = validate_date_range(start, end)
        return list(self._cache.get_or_compute(
            POOL_TIME_SERIES,
            ("series", t, s, e),
            lambda: self._resolve_series(t, s, e),
            cacheable=bool,
        ))

    def _covers(self, points: List[TimeSeriesPoint], start: date, end: date) -> bool:
        if not points:
            return False
        effective_end = min(end, timeutils.today())
        return (
            points[0].observed_date <= start + self._series_tolerance
            and points[-1].observed_date >= effective_end - self._series_tolerance
        )

    def _resolve_series(self, tenor: str, start: date, end: date) -> List[TimeSeriesPoint]:
        stored = self._store.time_series(DataCategory.YIELD_CURVE, tenor, start, end, scope=CURVE_REGION)
        if self._covers(stored, start, end):
            logger.info("Time series %s %s..%s served from durable store (%d points)", tenor, start, end, len(stored))
            return stored

        fetched = self._chain.fetch_time_series(tenor, start, end)
        if fetched:
            self._store.store_points(fetched, scope=CURVE_REGION)
            return list(fetched)

        if stored:
            logger.info("Returning partial stored series for %s %s..%s (%d points)", tenor, start, end, len(stored))
            return stored
        logger.info("No time series data available for %s from %s to %s", tenor, start, end)
        return []

    # ------------------------------------------------------------------
    # Category maps
    # ------------------------------------------------------------------

    def _resolve_map(
        self,
        category: DataCategory,
        scope: str,
        fetch: Callable[[], Optional[ProviderResult]],
        fallback: Callable[[], CategoryMap],
    ) -> CategoryMap:
        today = timeutils.today()
        stored = self._store.latest_as_of(category, today, scope=scope, not_before=today - self._latest_max_age)
        if stored is not None:
            logger.info("%s %s served from durable store", category.value, scope or "-")
            return dict(stored.values)

        fetched = fetch()
        if fetched is not None:
            self._store.store_category_map(category, fetched.values, fetched.source, today, scope=scope)
            return dict(fetched.values)

        return fallback()

    def credit_spreads(self) -> CategoryMap:
        return dict(self._cache.get_or_compute(
            POOL_REFERENCE,
            ("credit_spreads",),
            lambda: self._resolve_map(
                DataCategory.CREDIT_SPREAD, "", self._chain.fetch_credit_spreads, self._fallback.credit_spreads
            ),
        ))

    def inflation_expectations(self, region: str) -> CategoryMap:
        r = validate_region(region)
        return dict(self._cache.get_or_compute(
            POOL_REFERENCE,
            ("inflation", r),
            lambda: self._resolve_map(
                DataCategory.INFLATION_EXPECTATION,
                r,
                lambda: self._chain.fetch_inflation_expectations(r),
                lambda: self._fallback.inflation_expectations(r),
            ),
        ))

    def benchmark_rates(self) -> CategoryMap:
        return dict(self._cache.get_or_compute(
            POOL_REFERENCE,
            ("benchmark_rates",),
            lambda: self._resolve_map(
                DataCategory.BENCHMARK_RATE, "", self._chain.fetch_benchmark_rates, self._fallback.benchmark_rates
            ),
        ))

    def sector_credit_data(self, sector: Optional[str]) -> CategoryMap:
        s = validate_sector(sector)
        return dict(self._cache.get_or_compute(
            POOL_REFERENCE,
            ("sector", s),
            lambda: self._resolve_map(
                DataCategory.SECTOR_CREDIT_SPREAD,
                s or "",
                lambda: self._chain.fetch_sector_credit_data(s),
                lambda: self._fallback.sector_credit_data(s),
            ),
        ))

    def liquidity_premiums(self) -> CategoryMap:
        return dict(self._cache.get_or_compute(
            POOL_REFERENCE,
            ("liquidity_premiums",),
            lambda: self._resolve_map(
                DataCategory.LIQUIDITY_PREMIUM,
                "",
                self._chain.fetch_liquidity_premiums,
                self._fallback.liquidity_premiums,
            ),
        ))

    # ------------------------------------------------------------------
    # Scalar lookups: same tier order, one value at a time
    # ------------------------------------------------------------------

    def yield_for_tenor(self, tenor: str, region: Optional[str] = None) -> Decimal:
        t = validate_tenor(tenor)
        r = normalize_region(region) or DEFAULT_REGION
        return self._cache.get_or_compute(
            POOL_YIELD_CURVES, ("tenor_yield", t, r), lambda: self._resolve_tenor_yield(t, r)
        )

    def _resolve_tenor_yield(self, tenor: str, region: str) -> Decimal:
        today = timeutils.today()
        stored = self._store.point_lookup(
            DataCategory.YIELD_CURVE, tenor, today, scope=region, not_before=today - self._latest_max_age
        )
        if stored is not None:
            return stored

        if region == CURVE_REGION:
            curve = self._chain.fetch_latest_curve()
            if curve is not None:
                self._store.store_snapshot(curve)
                value = curve.yields.get(tenor)
                if value is not None:
                    return value
                logger.warning("Provider curve from %s has no %s point", curve.source, tenor)

        return self._fallback.yield_for_tenor(tenor, region)

    def credit_spread_for_rating(self, rating: Optional[str]) -> Decimal:
        bucket = normalize_rating(rating) or DEFAULT_RATING
        return self._cache.get_or_compute(
            POOL_REFERENCE,
            ("rating_spread", bucket),
            lambda: self._resolve_scalar(
                DataCategory.CREDIT_SPREAD,
                bucket,
                self._chain.fetch_credit_spreads,
                lambda: self._fallback.credit_spread_for_rating(bucket),
            ),
        )

    def benchmark_rate_for_region(self, region: Optional[str]) -> Decimal:
        r = normalize_region(region) or DEFAULT_REGION
        return self._cache.get_or_compute(
            POOL_REFERENCE,
            ("region_rate", r),
            lambda: self._resolve_scalar(
                DataCategory.BENCHMARK_RATE,
                r,
                self._chain.fetch_benchmark_rates,
                lambda: self._fallback.benchmark_rate_for_region(r),
            ),
        )

    def _resolve_scalar(
        self,
        category: DataCategory,
        key: str,
        fetch: Callable[[], Optional[ProviderResult]],
        fallback: Callable[[], Decimal],
    ) -> Decimal:
        today = timeutils.today()
        stored = self._store.point_lookup(category, key, today, not_before=today - self._latest_max_age)
        if stored is not None:
            return stored

        fetched = fetch()
        if fetched is not None:
            self._store.store_category_map(category, fetched.values, fetched.source, today)
            value = fetched.values.get(key)
            if value is not None:
                return value
            logger.warning("%s from %s has no entry for %s", category.value, fetched.source, key)

        return fallback()

    # ------------------------------------------------------------------
    # Operational visibility
    # ------------------------------------------------------------------

    def is_available(self) -> bool:
        return self._chain.is_any_healthy()

    def provider_health_status(self) -> Dict[str, bool]:
        return self._chain.health_status()

    def supported_tenors(self) -> FrozenSet[str]:
        return self._chain.supported_tenors()

    def cache_stats(self) -> Dict[str, Dict[str, object]]:
        return self._cache.stats()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear_caches(self) -> int:
        n = self._cache.clear_all()
        logger.info("Cleared all cache pools (%d entries)", n)
        return n

    def clear_cache(self, name: str) -> int:
        if name not in self._cache.pool_names:
            raise InvalidInputError(
                f"Unknown cache pool '{name}'. Available: {', '.join(self._cache.pool_names)}"
            )
        return self._cache.clear(name)

    def clear_database_data(self) -> int:
        return self._store.clear_all()

    def clean_old_data(self, days_to_keep: int) -> int:
        """Delete durable records observed more than days_to_keep days ago."""
        days = validate_days_to_keep(days_to_keep)
        cutoff = timeutils.today() - timedelta(days=days)
        return self._store.purge_older_than(cutoff)


def create_market_data_service(cfg: Optional[dict] = None) -> MarketDataService:
    """Wire a MarketDataService from merged config (defaults <- config.yaml <- env)."""
    cfg = cfg if cfg is not None else app_config.get_config()
    chain = create_provider_chain(cfg)
    store = MarketDataStore(app_config.db_path(cfg))
    cache = TieredCache(app_config.cache_settings(cfg).get("pools"))
    logger.info(
        "MarketDataService initialised with providers %s, store %s",
        [p.provider_name for p in chain.providers], store.db_path,
    )
    return MarketDataService(
        chain=chain,
        store=store,
        cache=cache,
        fallback=StaticFallbackResolver(),
        series_tolerance_days=app_config.series_tolerance_days(cfg),
        latest_max_age_days=app_config.latest_max_age_days(cfg),
    )
