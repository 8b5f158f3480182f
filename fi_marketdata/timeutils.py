"""
Single source for "today". Supports deterministic mode for tests via
FI_MARKETDATA_DETERMINISTIC_DATE (ISO date, e.g. 2026-01-02).
"""

from __future__ import annotations

import os
from datetime import date, datetime, timezone


def today() -> date:
    """
    Return the current UTC calendar date.
    If env FI_MARKETDATA_DETERMINISTIC_DATE is set, return that date instead.
    """
    fixed = os.environ.get("FI_MARKETDATA_DETERMINISTIC_DATE", "").strip()
    if fixed:
        return date.fromisoformat(fixed[:10])
    return datetime.now(timezone.utc).date()


def now_utc_iso() -> str:
    """Current UTC timestamp with microseconds; orders rows written in the same second."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
