"""
Provider chain: ordered fallthrough across market-data providers.

For each operation the chain asks the primary first, then the optional
secondary. A provider that is unhealthy, raises, returns Unsupported, or
returns nothing is skipped the same way; callers never see provider-specific
errors. When every provider is exhausted the chain returns None and the
service decides what to do next.
"""
from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Any, Callable, Dict, FrozenSet, List, NamedTuple, Optional, Tuple

from ..core.errors import InvalidInputError
from ..core.types import CategoryMap, TimeSeriesPoint, YieldCurveSnapshot
from .base import MarketDataProvider, ProviderStats, Unsupported

logger = logging.getLogger(__name__)


class ProviderResult(NamedTuple):
    """A category map together with the name of the provider that produced it."""

    source: str
    values: CategoryMap


def _is_empty(result: Any) -> bool:
    if result is None:
        return True
    if isinstance(result, YieldCurveSnapshot):
        return not result.yields
    try:
        return len(result) == 0
    except TypeError:
        return False


class ProviderChain:
    """
    Primary provider plus an optional secondary, tried in that order.

    A missing secondary behaves exactly like an unhealthy one.
    """

    def __init__(
        self,
        primary: MarketDataProvider,
        secondary: Optional[MarketDataProvider] = None,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._stats_lock = threading.Lock()
        self._stats: Dict[str, ProviderStats] = {
            p.provider_name: ProviderStats(provider_name=p.provider_name) for p in self.providers
        }

    @property
    def providers(self) -> List[MarketDataProvider]:
        return [p for p in (self._primary, self._secondary) if p is not None]

    def _record(self, name: str, error: Optional[str] = None) -> None:
        with self._stats_lock:
            stats = self._stats[name]
            if error is None:
                stats.record_success()
            else:
                stats.record_failure(error)

    def _first(self, operation: str, call: Callable[[MarketDataProvider], Any]) -> Optional[Any]:
        found = self._first_sourced(operation, call)
        return found[1] if found is not None else None

    def _first_sourced(
        self, operation: str, call: Callable[[MarketDataProvider], Any]
    ) -> Optional[Tuple[str, Any]]:
        for provider in self.providers:
            name = provider.provider_name
            if not provider.is_healthy():
                logger.warning("Provider %s is unhealthy, skipping %s", name, operation)
                self._record(name, f"{operation}: unhealthy")
                continue
            try:
                result = call(provider)
            except InvalidInputError:
                raise
            except Exception as exc:
                msg = f"{name}: {type(exc).__name__}: {exc}"
                logger.warning("Provider %s failed for %s: %s", name, operation, msg)
                self._record(name, f"{operation}: {msg}")
                continue
            if isinstance(result, Unsupported):
                logger.warning("Provider %s does not support %s", name, operation)
                continue
            if _is_empty(result):
                logger.warning("Provider %s returned no data for %s", name, operation)
                self._record(name, f"{operation}: empty result")
                continue
            self._record(name)
            logger.info("Resolved %s from provider %s", operation, name)
            return name, result
        logger.warning("All providers exhausted for %s", operation)
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fetch_latest_curve(self) -> Optional[YieldCurveSnapshot]:
        return self._first("latest_curve", lambda p: p.fetch_latest_curve())

    def fetch_historical_curve(self, on_date: date) -> Optional[YieldCurveSnapshot]:
        return self._first(f"historical_curve {on_date}", lambda p: p.fetch_historical_curve(on_date))

    def fetch_curves_for_dates(self, dates: List[date]) -> Optional[List[YieldCurveSnapshot]]:
        return self._first(f"curves_for_dates ({len(dates)})", lambda p: p.fetch_curves_for_dates(dates))

    def fetch_time_series(self, tenor: str, start: date, end: date) -> Optional[List[TimeSeriesPoint]]:
        return self._first(
            f"time_series {tenor} {start}..{end}", lambda p: p.fetch_time_series(tenor, start, end)
        )

    def _category(self, operation: str, call: Callable[[MarketDataProvider], Any]) -> Optional[ProviderResult]:
        found = self._first_sourced(operation, call)
        if found is None:
            return None
        return ProviderResult(source=found[0], values=dict(found[1]))

    def fetch_credit_spreads(self) -> Optional[ProviderResult]:
        return self._category("credit_spreads", lambda p: p.fetch_credit_spreads())

    def fetch_benchmark_rates(self) -> Optional[ProviderResult]:
        return self._category("benchmark_rates", lambda p: p.fetch_benchmark_rates())

    def fetch_inflation_expectations(self, region: str) -> Optional[ProviderResult]:
        return self._category(
            f"inflation_expectations {region}", lambda p: p.fetch_inflation_expectations(region)
        )

    def fetch_sector_credit_data(self, sector: Optional[str]) -> Optional[ProviderResult]:
        return self._category(f"sector_credit_data {sector}", lambda p: p.fetch_sector_credit_data(sector))

    def fetch_liquidity_premiums(self) -> Optional[ProviderResult]:
        return self._category("liquidity_premiums", lambda p: p.fetch_liquidity_premiums())

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def health_status(self) -> Dict[str, bool]:
        """Live probe of every configured provider."""
        return {p.provider_name: p.is_healthy() for p in self.providers}

    def is_any_healthy(self) -> bool:
        return any(p.is_healthy() for p in self.providers)

    def supported_tenors(self) -> FrozenSet[str]:
        tenors: set = set()
        for p in self.providers:
            tenors.update(p.supported_tenors())
        return frozenset(tenors)

    def stats(self) -> Dict[str, ProviderStats]:
        """Copy of per-provider outcome counters."""
        with self._stats_lock:
            return {
                name: ProviderStats(
                    provider_name=s.provider_name,
                    successes=s.successes,
                    failures=s.failures,
                    last_error=s.last_error,
                    last_success_on=s.last_success_on,
                )
                for name, s in self._stats.items()
            }
