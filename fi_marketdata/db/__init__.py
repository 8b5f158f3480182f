"""
Database layer: schema migrations and the durable-store adapter.
"""

from __future__ import annotations

from .migrations import run_migrations
from .store import MarketDataStore

__all__ = ["run_migrations", "MarketDataStore"]
