"""
Core value types, error taxonomy, and input validation. No I/O.
"""

from __future__ import annotations

from .errors import (
    InvalidInputError,
    MarketDataError,
    PersistenceError,
    ProviderUnavailableError,
)
from .types import CategoryMap, DataCategory, TimeSeriesPoint, YieldCurveSnapshot

__all__ = [
    "CategoryMap",
    "DataCategory",
    "InvalidInputError",
    "MarketDataError",
    "PersistenceError",
    "ProviderUnavailableError",
    "TimeSeriesPoint",
    "YieldCurveSnapshot",
]
