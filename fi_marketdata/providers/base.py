"""
Provider interfaces and shared provider behaviour.

Every external source implements MarketDataProvider. Category operations a
source does not offer return an Unsupported tag instead of raising, so the
chain can move on without treating the provider as broken.

BaseMarketDataProvider supplies the common pieces: argument validation,
upstream value parsing, per-tenor fan-out, and Unsupported defaults.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import (
    Any,
    Dict,
    FrozenSet,
    List,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from .. import timeutils
from ..core.errors import ProviderUnavailableError
from ..core.types import CategoryMap, TimeSeriesPoint, YieldCurveSnapshot
from ..core.validation import (
    validate_date,
    validate_date_range,
    validate_dates,
    validate_tenor,
)
from .fanout import fetch_concurrently

logger = logging.getLogger(__name__)

MAX_BATCH_WORKERS = 4

MISSING_VALUE_SENTINELS = frozenset({"", ".", "NaN", "nan", "N/A"})


@dataclass(frozen=True)
class Unsupported:
    """Returned by a provider for an operation it does not offer."""

    provider_name: str
    operation: str

    def __bool__(self) -> bool:
        return False


CategoryResult = Union[CategoryMap, Unsupported]


@dataclass
class ProviderStats:
    """Mutable outcome counters for one provider; diagnostics only, never used for routing."""

    provider_name: str
    successes: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    last_success_on: Optional[date] = None

    def record_success(self) -> None:
        self.successes += 1
        self.last_success_on = timeutils.today()

    def record_failure(self, error: str) -> None:
        self.failures += 1
        self.last_error = error[:500]


@runtime_checkable
class MarketDataProvider(Protocol):
    """Capability interface every market-data source implements."""

    @property
    def provider_name(self) -> str: ...

    def supported_tenors(self) -> FrozenSet[str]: ...

    def is_healthy(self) -> bool:
        """Cheap liveness probe; never raises."""
        ...

    def fetch_latest_curve(self) -> YieldCurveSnapshot: ...

    def fetch_historical_curve(self, on_date: date) -> YieldCurveSnapshot: ...

    def fetch_curves_for_dates(self, dates: List[date]) -> List[YieldCurveSnapshot]: ...

    def fetch_time_series(self, tenor: str, start: date, end: date) -> List[TimeSeriesPoint]: ...

    def fetch_credit_spreads(self) -> CategoryResult: ...

    def fetch_benchmark_rates(self) -> CategoryResult: ...

    def fetch_inflation_expectations(self, region: str) -> CategoryResult: ...

    def fetch_sector_credit_data(self, sector: Optional[str]) -> CategoryResult: ...

    def fetch_liquidity_premiums(self) -> CategoryResult: ...


def parse_yield_value(raw: Any) -> Optional[Decimal]:
    """
    Parse an upstream numeric field.

    Missing-value sentinels ('.', empty) and malformed strings yield None so the
    caller can treat that key as absent for this fetch.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    else:
        text = str(raw).strip()
    if text in MISSING_VALUE_SENTINELS:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        logger.debug("Unparseable upstream value %r", raw)
        return None
    if not value.is_finite():
        return None
    return value


class BaseMarketDataProvider:
    """
    Shared base for concrete providers.

    Subclasses set SOURCE, REGION and SERIES_BY_TENOR and implement
    _fetch_tenor_value(); the curve operations are built on top of it.
    """

    SOURCE = "UNKNOWN"
    REGION = "EUR"
    CURRENCY: Optional[str] = "EUR"
    SERIES_BY_TENOR: Dict[str, str] = {}

    def __init__(self, fanout_timeout_s: float = 15.0) -> None:
        self._fanout_timeout_s = fanout_timeout_s

    @property
    def provider_name(self) -> str:
        return self.SOURCE

    def supported_tenors(self) -> FrozenSet[str]:
        return frozenset(self.SERIES_BY_TENOR)

    def series_for(self, tenor: str) -> str:
        return self.SERIES_BY_TENOR[validate_tenor(tenor, self.supported_tenors())]

    def is_healthy(self) -> bool:
        try:
            return bool(self._probe())
        except Exception as exc:
            logger.warning("Health check failed for %s: %s", self.provider_name, exc)
            return False

    def _probe(self) -> bool:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Per-tenor primitive
    # ------------------------------------------------------------------

    def _fetch_tenor_value(self, tenor: str, on_date: Optional[date]) -> Optional[Decimal]:
        """Latest value for one tenor (on_date=None) or the last value at/before on_date."""
        raise NotImplementedError

    def _fetch_curve(self, on_date: Optional[date]) -> YieldCurveSnapshot:
        """Fan out one fetch per tenor and merge the successes."""
        label = on_date.isoformat() if on_date else "latest"

        def fetch(tenor: str) -> Optional[Decimal]:
            return self._fetch_tenor_value(tenor, on_date)

        yields = fetch_concurrently(
            list(self.SERIES_BY_TENOR),
            fetch,
            timeout_s=self._fanout_timeout_s,
            label=f"{self.provider_name} curve {label}",
        )
        if not yields:
            raise ProviderUnavailableError(f"{self.provider_name}: no tenors returned for {label} curve")
        missing = sorted(set(self.SERIES_BY_TENOR) - set(yields))
        if missing:
            logger.warning(
                "%s %s curve missing %d/%d tenors: %s",
                self.provider_name, label, len(missing), len(self.SERIES_BY_TENOR), ", ".join(missing),
            )
        today = timeutils.today()
        return YieldCurveSnapshot(
            date=on_date or today,
            source=self.SOURCE,
            yields=yields,
            last_updated=today,
            region=self.REGION,
        )

    # ------------------------------------------------------------------
    # Curve operations
    # ------------------------------------------------------------------

    def fetch_latest_curve(self) -> YieldCurveSnapshot:
        return self._fetch_curve(None)

    def fetch_historical_curve(self, on_date: date) -> YieldCurveSnapshot:
        return self._fetch_curve(validate_date(on_date))

    def fetch_curves_for_dates(self, dates: List[date]) -> List[YieldCurveSnapshot]:
        """Historical curves for each date, fetched concurrently; failed dates are omitted."""
        checked = list(dict.fromkeys(validate_dates(dates)))
        workers = min(len(checked), MAX_BATCH_WORKERS)
        by_date = fetch_concurrently(
            checked,
            self._fetch_curve,
            timeout_s=self._fanout_timeout_s * math.ceil(len(checked) / workers),
            max_workers=workers,
            label=f"{self.provider_name} batch curves",
        )
        return [by_date[d] for d in checked if d in by_date]

    def fetch_time_series(self, tenor: str, start: date, end: date) -> List[TimeSeriesPoint]:
        raise NotImplementedError

    def _validate_series_args(self, tenor: str, start: date, end: date) -> tuple[str, date, date]:
        t = validate_tenor(tenor, self.supported_tenors())
        s, e = validate_date_range(start, end)
        return t, s, e

    # ------------------------------------------------------------------
    # Category operations: unsupported unless overridden
    # ------------------------------------------------------------------

    def _unsupported(self, operation: str) -> Unsupported:
        return Unsupported(provider_name=self.provider_name, operation=operation)

    def fetch_credit_spreads(self) -> CategoryResult:
        return self._unsupported("credit_spreads")

    def fetch_benchmark_rates(self) -> CategoryResult:
        return self._unsupported("benchmark_rates")

    def fetch_inflation_expectations(self, region: str) -> CategoryResult:
        return self._unsupported("inflation_expectations")

    def fetch_sector_credit_data(self, sector: Optional[str]) -> CategoryResult:
        return self._unsupported("sector_credit_data")

    def fetch_liquidity_premiums(self) -> CategoryResult:
        return self._unsupported("liquidity_premiums")


def parse_category_map(payload: Any) -> CategoryMap:
    """Parse a flat {key: number} JSON object, dropping unparseable values."""
    out: CategoryMap = {}
    if not isinstance(payload, dict):
        return out
    for key, raw in payload.items():
        value = parse_yield_value(raw)
        if value is not None:
            out[str(key).upper()] = value
    return out

