"""
Shared exception types for fi_marketdata.

Only InvalidInputError is meant to reach callers of the service; the other
types are raised inside a tier and converted to "try the next tier".
"""

from __future__ import annotations


class MarketDataError(Exception):
    """Base exception for fi_marketdata; catch this for any package-raised error."""

    pass


class InvalidInputError(MarketDataError, ValueError):
    """Malformed or out-of-range caller argument (future date, unknown tenor, ...)."""

    pass


class ProviderUnavailableError(MarketDataError):
    """A provider could not produce data (unreachable, unconfigured, no tenors)."""

    pass


class PersistenceError(MarketDataError):
    """Durable store read/write failure."""

    pass


__all__ = [
    "MarketDataError",
    "InvalidInputError",
    "ProviderUnavailableError",
    "PersistenceError",
]
