"""
Store: SQLite connection primitives. No business logic.
"""

from __future__ import annotations

from .sqlite_session import sqlite_conn

__all__ = ["sqlite_conn"]
