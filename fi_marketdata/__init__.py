"""
Top-level public API surface.
Canonical entrypoint: create_market_data_service(); lower layers live in
fi_marketdata.core, .providers, .db and .cache.
"""

from __future__ import annotations

from .cache import TieredCache
from .core import (
    CategoryMap,
    DataCategory,
    InvalidInputError,
    MarketDataError,
    PersistenceError,
    ProviderUnavailableError,
    TimeSeriesPoint,
    YieldCurveSnapshot,
)
from .fallback import StaticFallbackResolver
from .service import MarketDataService, create_market_data_service

__version__ = "0.1.0"

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "CategoryMap",
    "DataCategory",
    "InvalidInputError",
    "MarketDataError",
    "MarketDataService",
    "PersistenceError",
    "ProviderUnavailableError",
    "StaticFallbackResolver",
    "TieredCache",
    "TimeSeriesPoint",
    "YieldCurveSnapshot",
    "create_market_data_service",
]
