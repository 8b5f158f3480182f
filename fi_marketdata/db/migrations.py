"""
Idempotent database migrations.

All schema changes use CREATE TABLE IF NOT EXISTS and guarded ALTER TABLE
so they can be re-run safely at any time.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)


def _safe_add_column(conn: sqlite3.Connection, table: str, column: str, col_type: str) -> None:
    """Add a column if it doesn't already exist."""
    cols = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
    if column in cols:
        return
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type};")
    conn.commit()
    logger.debug("Added column %s.%s", table, column)


def run_migrations(conn: sqlite3.Connection) -> None:
    """
    Apply all schema migrations idempotently.

    Values are stored as TEXT so Decimal round-trips exactly.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS market_data (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            category TEXT NOT NULL,
            scope TEXT NOT NULL DEFAULT '',
            data_key TEXT NOT NULL,
            value TEXT NOT NULL,
            observed_date TEXT NOT NULL,
            source TEXT NOT NULL,
            currency TEXT,
            UNIQUE(category, scope, data_key, observed_date, source)
        );
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_market_data_lookup "
        "ON market_data(category, scope, observed_date);"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_market_data_date ON market_data(observed_date);"
    )

    # Provenance: when the row was last written (last writer wins on upsert)
    _safe_add_column(conn, "market_data", "updated_at", "TEXT")
    conn.commit()
