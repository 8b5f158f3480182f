"""
Durable-store adapter over the market_data table.

The pipeline treats this as a second cache tier with unbounded retention:
- reads that fail are logged and reported as "nothing stored" so the caller
  falls through to providers;
- write-back never raises; a failed upsert is logged and the already-resolved
  value is still returned to the caller.
Maintenance operations (purge, clear) raise PersistenceError.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Optional, Sequence, Tuple, Union

from .. import timeutils
from ..core.errors import PersistenceError
from ..core.types import DataCategory, TimeSeriesPoint, YieldCurveSnapshot
from ..store.sqlite_session import sqlite_conn
from .migrations import run_migrations

logger = logging.getLogger(__name__)

REGION_CURRENCY = {
    "US": "USD",
    "EUR": "EUR",
    "UK": "GBP",
    "JP": "JPY",
    "CA": "CAD",
    "AU": "AUD",
}

_UPSERT_SQL = """
    INSERT INTO market_data
        (category, scope, data_key, value, observed_date, source, currency, updated_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(category, scope, data_key, observed_date, source) DO UPDATE SET
        value = excluded.value,
        currency = excluded.currency,
        updated_at = excluded.updated_at;
"""

_Row = Tuple[str, str, str, str, str, str, Optional[str], str]


@dataclass(frozen=True)
class RecordSet:
    """All keys stored for one (category, scope, observed_date, source)."""

    category: DataCategory
    scope: str
    observed_date: date
    source: str
    values: Dict[str, Decimal] = field(default_factory=dict)

    def to_snapshot(self) -> YieldCurveSnapshot:
        return YieldCurveSnapshot(
            date=self.observed_date,
            source=self.source,
            yields=self.values,
            last_updated=self.observed_date,
            region=self.scope or "EUR",
        )


def _to_decimal(raw: str) -> Optional[Decimal]:
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        return None


class MarketDataStore:
    """Read/write market_data records in a SQLite file."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self._db_path = str(db_path)
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    @property
    def db_path(self) -> str:
        return self._db_path

    def ensure_schema(self) -> None:
        """Run migrations once per instance; raises PersistenceError on failure."""
        with self._schema_lock:
            if self._schema_ready:
                return
            try:
                with sqlite_conn(self._db_path) as conn:
                    run_migrations(conn)
            except (sqlite3.Error, OSError) as exc:
                raise PersistenceError(f"Cannot initialise market_data schema at {self._db_path}: {exc}") from exc
            self._schema_ready = True

    @contextmanager
    def _session(self) -> Generator[sqlite3.Connection, None, None]:
        self.ensure_schema()
        try:
            with sqlite_conn(self._db_path) as conn:
                yield conn
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(f"market_data access failed: {exc}") from exc

    def _fetch(self, sql: str, params: Sequence) -> List[tuple]:
        with self._session() as conn:
            return conn.execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _record_set_on(self, category: DataCategory, scope: str, on_date: str) -> Optional[RecordSet]:
        src_rows = self._fetch(
            "SELECT source FROM market_data "
            "WHERE category = ? AND scope = ? AND observed_date = ? "
            "ORDER BY updated_at DESC, id DESC LIMIT 1",
            (category.value, scope, on_date),
        )
        if not src_rows:
            return None
        source = src_rows[0][0]
        rows = self._fetch(
            "SELECT data_key, value FROM market_data "
            "WHERE category = ? AND scope = ? AND observed_date = ? AND source = ?",
            (category.value, scope, on_date, source),
        )
        values: Dict[str, Decimal] = {}
        for key, raw in rows:
            value = _to_decimal(raw)
            if value is not None:
                values[key] = value
        if not values:
            return None
        return RecordSet(
            category=category,
            scope=scope,
            observed_date=date.fromisoformat(on_date),
            source=source,
            values=values,
        )

    def latest_as_of(
        self,
        category: DataCategory,
        as_of: date,
        scope: str = "",
        not_before: Optional[date] = None,
    ) -> Optional[RecordSet]:
        """Most recent record set at or before as_of (and not before not_before), or None."""
        floor = not_before.isoformat() if not_before else ""
        try:
            rows = self._fetch(
                "SELECT MAX(observed_date) FROM market_data "
                "WHERE category = ? AND scope = ? AND observed_date <= ? AND observed_date >= ?",
                (category.value, scope, as_of.isoformat(), floor),
            )
            if not rows or rows[0][0] is None:
                return None
            return self._record_set_on(category, scope, rows[0][0])
        except PersistenceError as exc:
            logger.warning("Durable store read failed for %s/%s as of %s: %s", category.value, scope, as_of, exc)
            return None

    def exact_date(self, category: DataCategory, on_date: date, scope: str = "") -> Optional[RecordSet]:
        """Record set observed exactly on on_date, or None."""
        try:
            return self._record_set_on(category, scope, on_date.isoformat())
        except PersistenceError as exc:
            logger.warning("Durable store read failed for %s/%s on %s: %s", category.value, scope, on_date, exc)
            return None

    def time_series(
        self,
        category: DataCategory,
        key: str,
        start: date,
        end: date,
        scope: str = "",
    ) -> List[TimeSeriesPoint]:
        """Points for one key in [start, end], ascending; one point per date (latest write wins)."""
        try:
            rows = self._fetch(
                "SELECT observed_date, value, source, currency FROM market_data "
                "WHERE category = ? AND scope = ? AND data_key = ? "
                "AND observed_date >= ? AND observed_date <= ? "
                "ORDER BY observed_date ASC, updated_at ASC, id ASC",
                (category.value, scope, key, start.isoformat(), end.isoformat()),
            )
        except PersistenceError as exc:
            logger.warning("Durable store series read failed for %s/%s: %s", category.value, key, exc)
            return []
        by_date: Dict[str, TimeSeriesPoint] = {}
        for observed, raw, source, currency in rows:
            value = _to_decimal(raw)
            if value is None:
                continue
            by_date[observed] = TimeSeriesPoint(
                category=category,
                key=key,
                value=value,
                observed_date=date.fromisoformat(observed),
                source=source,
                currency=currency,
            )
        return [by_date[d] for d in sorted(by_date)]

    def point_lookup(
        self,
        category: DataCategory,
        key: str,
        as_of: date,
        scope: str = "",
        not_before: Optional[date] = None,
    ) -> Optional[Decimal]:
        """Most recent value for a single key at or before as_of."""
        floor = not_before.isoformat() if not_before else ""
        try:
            rows = self._fetch(
                "SELECT value FROM market_data "
                "WHERE category = ? AND scope = ? AND data_key = ? "
                "AND observed_date <= ? AND observed_date >= ? "
                "ORDER BY observed_date DESC, updated_at DESC, id DESC LIMIT 1",
                (category.value, scope, key, as_of.isoformat(), floor),
            )
        except PersistenceError as exc:
            logger.warning("Durable store point lookup failed for %s/%s: %s", category.value, key, exc)
            return None
        if not rows:
            return None
        return _to_decimal(rows[0][0])

    def count(self, category: Optional[DataCategory] = None) -> int:
        if category is None:
            rows = self._fetch("SELECT COUNT(*) FROM market_data", ())
        else:
            rows = self._fetch("SELECT COUNT(*) FROM market_data WHERE category = ?", (category.value,))
        return int(rows[0][0])

    # ------------------------------------------------------------------
    # Write-back (best effort)
    # ------------------------------------------------------------------

    def _upsert(self, rows: List[_Row]) -> int:
        if not rows:
            return 0
        try:
            with self._session() as conn:
                conn.executemany(_UPSERT_SQL, rows)
                conn.commit()
        except PersistenceError as exc:
            logger.warning("Write-back of %d market_data rows failed: %s", len(rows), exc)
            return 0
        return len(rows)

    def store_snapshot(self, snapshot: YieldCurveSnapshot) -> int:
        """Decompose a curve into one row per tenor, scoped by region."""
        stamp = timeutils.now_utc_iso()
        currency = REGION_CURRENCY.get(snapshot.region)
        rows: List[_Row] = [
            (
                DataCategory.YIELD_CURVE.value,
                snapshot.region,
                tenor,
                str(value),
                snapshot.date.isoformat(),
                snapshot.source,
                currency,
                stamp,
            )
            for tenor, value in snapshot.yields.items()
        ]
        return self._upsert(rows)

    def store_category_map(
        self,
        category: DataCategory,
        values: Dict[str, Decimal],
        source: str,
        on_date: date,
        scope: str = "",
        currency: Optional[str] = None,
    ) -> int:
        stamp = timeutils.now_utc_iso()
        rows: List[_Row] = [
            (category.value, scope, key, str(value), on_date.isoformat(), source, currency, stamp)
            for key, value in values.items()
        ]
        return self._upsert(rows)

    def store_points(self, points: Iterable[TimeSeriesPoint], scope: str = "") -> int:
        stamp = timeutils.now_utc_iso()
        rows: List[_Row] = [
            (
                p.category.value,
                scope,
                p.key,
                str(p.value),
                p.observed_date.isoformat(),
                p.source,
                p.currency,
                stamp,
            )
            for p in points
        ]
        return self._upsert(rows)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def purge_older_than(self, cutoff: date) -> int:
        """Delete rows observed strictly before cutoff; returns rows deleted."""
        with self._session() as conn:
            cur = conn.execute("DELETE FROM market_data WHERE observed_date < ?", (cutoff.isoformat(),))
            conn.commit()
            deleted = cur.rowcount
        logger.info("Purged %d market_data rows older than %s", deleted, cutoff)
        return deleted

    def clear_all(self) -> int:
        with self._session() as conn:
            cur = conn.execute("DELETE FROM market_data")
            conn.commit()
            deleted = cur.rowcount
        logger.info("Cleared %d market_data rows", deleted)
        return deleted
