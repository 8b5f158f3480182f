"""
FRED (Federal Reserve Economic Data) provider for Euro-area government yields.

Uses the series observations endpoint (API key required):
  GET https://api.stlouisfed.org/fred/series/observations
      ?series_id=...&api_key=...&file_type=json
      [&observation_start=YYYY-MM-DD][&observation_end=YYYY-MM-DD]
      [&limit=N][&sort_order=asc|desc]

FRED reports missing observations with the value ".".
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests

from ..core.errors import ProviderUnavailableError
from ..core.types import DataCategory, TimeSeriesPoint
from .base import BaseMarketDataProvider, parse_yield_value
from .resilience import RetryConfig, resilient_call

logger = logging.getLogger(__name__)

FRED_BASE_URL = "https://api.stlouisfed.org/fred/series/observations"
CONNECT_TIMEOUT_S = 5.0
READ_TIMEOUT_S = 10.0
HEALTH_CHECK_TENOR = "10Y"

# Euro-area government bond yield series by tenor
FRED_SERIES_BY_TENOR = {
    "1M": "IRLTLT01EZM156N",
    "3M": "IRLTLT01EZQ156N",
    "6M": "IR3TIB01EZM156N",
    "1Y": "IRLTLT01EZA156N",
    "2Y": "IRLTLT02EZA156N",
    "3Y": "IRLTLT03EZA156N",
    "5Y": "IRLTLT05EZA156N",
    "7Y": "IRLTLT07EZA156N",
    "10Y": "IRLTLT10EZA156N",
    "20Y": "IRLTLT20EZA156N",
    "30Y": "IRLTLT30EZA156N",
}


class FredProvider(BaseMarketDataProvider):
    """Yield curves and yield time series from FRED. Other categories are unsupported."""

    SOURCE = "FRED"
    REGION = "EUR"
    CURRENCY = "EUR"
    SERIES_BY_TENOR = FRED_SERIES_BY_TENOR

    def __init__(
        self,
        api_key: str = "",
        base_url: str = FRED_BASE_URL,
        connect_timeout_s: float = CONNECT_TIMEOUT_S,
        read_timeout_s: float = READ_TIMEOUT_S,
        retry_config: Optional[RetryConfig] = None,
        fanout_timeout_s: float = 15.0,
    ) -> None:
        super().__init__(fanout_timeout_s=fanout_timeout_s)
        self._api_key = (api_key or "").strip()
        self._base_url = base_url or FRED_BASE_URL
        self._timeout = (float(connect_timeout_s), float(read_timeout_s))
        self._retry_config = retry_config or RetryConfig(max_retries=1)

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _require_api_key(self) -> None:
        if not self._api_key:
            raise ProviderUnavailableError("FRED API key is not configured")

    def _params(
        self,
        series_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
        sort_order: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "series_id": series_id,
            "api_key": self._api_key,
            "file_type": "json",
        }
        if start is not None:
            params["observation_start"] = start.isoformat()
        if end is not None:
            params["observation_end"] = end.isoformat()
        if limit is not None:
            params["limit"] = limit
        if sort_order is not None:
            params["sort_order"] = sort_order
        return params

    def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        resp = requests.get(self._base_url, params=params, timeout=self._timeout)
        if resp.status_code == 429:
            raise ProviderUnavailableError("FRED rate limit (HTTP 429)")
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ProviderUnavailableError(f"FRED returned unexpected payload for {params.get('series_id')}")
        return data

    def _observations(self, **kwargs: Any) -> List[Dict[str, Any]]:
        self._require_api_key()
        data = resilient_call(self._get, self._params(**kwargs), retry_config=self._retry_config)
        obs = data.get("observations")
        return obs if isinstance(obs, list) else []

    # ------------------------------------------------------------------
    # BaseMarketDataProvider hooks
    # ------------------------------------------------------------------

    def _probe(self) -> bool:
        if not self._api_key:
            logger.warning("FRED health check failed: API key is not configured")
            return False
        obs = self._observations(
            series_id=FRED_SERIES_BY_TENOR[HEALTH_CHECK_TENOR], limit=1, sort_order="desc"
        )
        return len(obs) > 0

    def _fetch_tenor_value(self, tenor: str, on_date: Optional[date]) -> Optional[Decimal]:
        obs = self._observations(
            series_id=FRED_SERIES_BY_TENOR[tenor],
            end=on_date,
            limit=1,
            sort_order="desc",
        )
        if not obs:
            return None
        return parse_yield_value(obs[0].get("value"))

    # ------------------------------------------------------------------
    # Time series
    # ------------------------------------------------------------------

    def fetch_time_series(self, tenor: str, start: date, end: date) -> List[TimeSeriesPoint]:
        t, s, e = self._validate_series_args(tenor, start, end)
        logger.info("Fetching FRED yield time series for %s from %s to %s", t, s, e)
        obs = self._observations(series_id=FRED_SERIES_BY_TENOR[t], start=s, end=e, sort_order="asc")
        points: List[TimeSeriesPoint] = []
        for row in obs:
            value = parse_yield_value(row.get("value"))
            raw_date = row.get("date")
            if value is None or not raw_date:
                continue
            try:
                observed = date.fromisoformat(str(raw_date))
            except ValueError:
                logger.debug("Skipping FRED observation with bad date %r", raw_date)
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
        if not points:
            logger.warning("No FRED data for %s between %s and %s", t, s, e)
        return points
