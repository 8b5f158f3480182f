"""
Alternative (secondary) market-data provider.

Optional REST source, disabled by default. Endpoints, relative to base_url:
  GET /health
  GET /yields/{series}?date=YYYY-MM-DD        -> {"value": "3.05"}
  GET /yields/{series}/history?start=..&end=.. -> {"observations": [{"date": ..., "value": ...}]}
  GET /credit-spreads                          -> {"AAA": 25, ...}
  GET /benchmark-rates                         -> {"US": 5.25, ...}

When the upstream is unreachable (or no base_url is configured) and
use_fallback_data is on, curves, credit spreads and benchmark rates degrade to
locally held EUR reference numbers. Time series are never synthesized.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import requests

from .. import timeutils
from ..core.errors import ProviderUnavailableError
from ..core.types import CategoryMap, DataCategory, TimeSeriesPoint, YieldCurveSnapshot
from ..core.validation import TENORS
from ..fallback import StaticFallbackResolver
from .base import BaseMarketDataProvider, CategoryResult, parse_category_map, parse_yield_value

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_S = 5.0
READ_TIMEOUT_S = 10.0

ALT_SERIES_BY_TENOR = {tenor: f"ALT_EUR_{tenor}" for tenor in TENORS}


class AlternativeDataProvider(BaseMarketDataProvider):
    """Secondary provider; healthy only when enabled (and reachable, if a base_url is set)."""

    SOURCE = "ALTERNATIVE_API"
    REGION = "EUR"
    CURRENCY = "EUR"
    SERIES_BY_TENOR = ALT_SERIES_BY_TENOR

    def __init__(
        self,
        enabled: bool = False,
        base_url: str = "",
        api_key: str = "",
        connect_timeout_s: float = CONNECT_TIMEOUT_S,
        read_timeout_s: float = READ_TIMEOUT_S,
        use_fallback_data: bool = True,
        fanout_timeout_s: float = 15.0,
        local_data: Optional[StaticFallbackResolver] = None,
    ) -> None:
        super().__init__(fanout_timeout_s=fanout_timeout_s)
        self._enabled = bool(enabled)
        self._base_url = (base_url or "").rstrip("/")
        self._api_key = (api_key or "").strip()
        self._timeout = (float(connect_timeout_s), float(read_timeout_s))
        self._use_fallback_data = bool(use_fallback_data)
        self._local = local_data or StaticFallbackResolver()
        if self._enabled and not self._api_key:
            logger.warning("Alternative API key is not configured")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _require_enabled(self) -> None:
        if not self._enabled:
            raise ProviderUnavailableError("Alternative API is not enabled")

    def _headers(self) -> Dict[str, str]:
        return {"X-API-Key": self._api_key} if self._api_key else {}

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        resp = requests.get(
            f"{self._base_url}{path}", params=params, headers=self._headers(), timeout=self._timeout
        )
        resp.raise_for_status()
        return resp.json()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def _probe(self) -> bool:
        if not self._enabled:
            return False
        if not self._base_url:
            return True
        resp = requests.get(f"{self._base_url}/health", headers=self._headers(), timeout=self._timeout)
        return resp.ok

    # ------------------------------------------------------------------
    # Curves
    # ------------------------------------------------------------------

    def _fetch_tenor_value(self, tenor: str, on_date: Optional[date]) -> Optional[Decimal]:
        params = {"date": on_date.isoformat()} if on_date else None
        payload = self._get_json(f"/yields/{ALT_SERIES_BY_TENOR[tenor]}", params)
        if not isinstance(payload, dict):
            return None
        return parse_yield_value(payload.get("value"))

    def _local_curve(self, on_date: Optional[date]) -> YieldCurveSnapshot:
        snapshot = self._local.yield_curve(self.REGION, on_date or timeutils.today())
        return snapshot.with_source(self.SOURCE)

    def _fetch_curve(self, on_date: Optional[date]) -> YieldCurveSnapshot:
        self._require_enabled()
        if self._base_url:
            try:
                return super()._fetch_curve(on_date)
            except ProviderUnavailableError as exc:
                if not self._use_fallback_data:
                    raise
                logger.warning("Alternative API curve fetch failed, using local data: %s", exc)
        elif not self._use_fallback_data:
            raise ProviderUnavailableError("Alternative API base_url is not configured")
        else:
            logger.info("Alternative API base_url not configured, using local curve data")
        return self._local_curve(on_date)

    # ------------------------------------------------------------------
    # Time series: upstream only
    # ------------------------------------------------------------------

    def fetch_time_series(self, tenor: str, start: date, end: date) -> List[TimeSeriesPoint]:
        t, s, e = self._validate_series_args(tenor, start, end)
        self._require_enabled()
        if not self._base_url:
            raise ProviderUnavailableError("Alternative API base_url is not configured")
        payload = self._get_json(
            f"/yields/{ALT_SERIES_BY_TENOR[t]}/history",
            {"start": s.isoformat(), "end": e.isoformat()},
        )
        rows = payload.get("observations") if isinstance(payload, dict) else None
        points: List[TimeSeriesPoint] = []
        for row in rows or []:
            value = parse_yield_value(row.get("value"))
            try:
                observed = date.fromisoformat(str(row.get("date")))
            except ValueError:
                continue
            if value is None or observed < s or observed > e:
                continue
            points.append(
                TimeSeriesPoint(
                    category=DataCategory.YIELD_CURVE,
                    key=t,
                    value=value,
                    observed_date=observed,
                    source=self.SOURCE,
                    currency=self.CURRENCY,
                )
            )
        points.sort(key=lambda p: p.observed_date)
        return points

    # ------------------------------------------------------------------
    # Category maps
    # ------------------------------------------------------------------

    def _category(self, path: str, local: Callable[[], CategoryMap], label: str) -> CategoryMap:
        self._require_enabled()
        if self._base_url:
            try:
                values = parse_category_map(self._get_json(path))
                if values:
                    return values
                logger.warning("Alternative API returned no %s", label)
            except (requests.RequestException, ValueError) as exc:
                if not self._use_fallback_data:
                    raise ProviderUnavailableError(f"Alternative API {label} failed: {exc}") from exc
                logger.warning("Alternative API %s failed, using local data: %s", label, exc)
        if not self._use_fallback_data:
            raise ProviderUnavailableError(f"Alternative API has no {label} and local data is disabled")
        return local()

    def fetch_credit_spreads(self) -> CategoryResult:
        return self._category("/credit-spreads", self._local.credit_spreads, "credit spreads")

    def fetch_benchmark_rates(self) -> CategoryResult:
        return self._category("/benchmark-rates", self._local.benchmark_rates, "benchmark rates")
