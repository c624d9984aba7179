from __future__ import annotations

import os
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from .models import EdgeKey, UsageEdge

SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS usage_edges (
  target_id TEXT NOT NULL,
  target_type TEXT NOT NULL,
  source_id TEXT NOT NULL,
  source_type TEXT NOT NULL,
  source_locale TEXT NOT NULL,
  source_version TEXT NOT NULL DEFAULT '',
  method TEXT NOT NULL,
  slot_name TEXT NOT NULL,
  count INTEGER NOT NULL CHECK (count > 0),
  PRIMARY KEY (
    target_id, target_type, source_id, source_type,
    source_locale, source_version, method, slot_name
  )
);

CREATE TABLE IF NOT EXISTS recompute_cursors (
  source_type TEXT PRIMARY KEY,
  last_id TEXT,
  processed INTEGER NOT NULL DEFAULT 0,
  total INTEGER NOT NULL DEFAULT 0,
  updated_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_usage_target ON usage_edges(target_type, target_id);
CREATE INDEX IF NOT EXISTS idx_usage_source ON usage_edges(source_type, source_id);
CREATE INDEX IF NOT EXISTS idx_usage_slot ON usage_edges(source_type, slot_name);
"""

FILTER_COLUMNS = (
    "target_id",
    "target_type",
    "source_id",
    "source_type",
    "source_locale",
    "source_version",
    "method",
    "slot_name",
)

# Numeric ids are stored as text; ordering by length first keeps them in natural order.
INTO_TARGET_ORDER = (
    "source_type, length(source_id) DESC, source_id DESC, "
    "length(source_version) DESC, source_version DESC, source_locale, method, slot_name"
)
FROM_SOURCE_ORDER = (
    "target_type, length(target_id), target_id, "
    "length(source_version) DESC, source_version DESC, source_locale, method, slot_name"
)


@dataclass(slots=True)
class RecomputeCursor:
    source_type: str
    last_id: str | None
    processed: int
    total: int
    updated_at: float


class LedgerStore(Protocol):
    """Abstraction for the backing edge table.

    Every write is atomic at the row level.
    """

    def init(self) -> None: ...

    def increment(self, key: EdgeKey, count: int) -> int: ...

    def decrement(self, key: EdgeKey, count: int | None) -> int: ...

    def get(self, key: EdgeKey) -> UsageEdge | None: ...

    def delete_where(self, **filters: str | None) -> int: ...

    def select(self, *, order_by: str, **filters: str | None) -> list[UsageEdge]: ...

    def get_cursor(self, source_type: str) -> RecomputeCursor | None: ...

    def save_cursor(self, cursor: RecomputeCursor) -> None: ...

    def clear_cursor(self, source_type: str) -> None: ...


def _is_locked(exc: BaseException) -> bool:
    return isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc).lower()


def lock_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(5),
        wait=wait_exponential_jitter(initial=0.05, max=1.0),
        retry=retry_if_exception(_is_locked),
    )


def _version_in(version: str | None) -> str:
    return "" if version is None else str(version)


def _version_out(version: str) -> str | None:
    return version or None


def _key_params(key: EdgeKey) -> tuple[str, ...]:
    return (
        key.target_id,
        key.target_type,
        key.source_id,
        key.source_type,
        key.source_locale,
        _version_in(key.source_version),
        key.method,
        key.slot_name,
    )


_KEY_WHERE = " AND ".join(f"{c}=?" for c in FILTER_COLUMNS)


def _where(filters: dict[str, str | None]) -> tuple[str, list[str]]:
    clauses: list[str] = []
    params: list[str] = []
    for column, value in filters.items():
        if column not in FILTER_COLUMNS:
            raise ValueError(f"Unknown filter column {column!r}")
        if value is None:
            continue
        clauses.append(f"{column}=?")
        params.append(_version_in(value) if column == "source_version" else str(value))
    return (" AND ".join(clauses) or "1=1"), params


def _row_to_edge(row: sqlite3.Row) -> UsageEdge:
    return UsageEdge(
        target_id=row["target_id"],
        target_type=row["target_type"],
        source_id=row["source_id"],
        source_type=row["source_type"],
        source_locale=row["source_locale"],
        source_version=_version_out(row["source_version"]),
        method=row["method"],
        slot_name=row["slot_name"],
        count=int(row["count"]),
    )


@dataclass
class SQLiteLedgerStore:
    """SQLite-backed edge table.

    Each operation opens its own short-lived connection; writes run inside
    BEGIN IMMEDIATE so the compare-and-update steps of one call are atomic.
    """

    path: str
    timeout: float = 5.0

    def connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(os.path.expanduser(self.path), timeout=self.timeout, isolation_level=None)
        con.row_factory = sqlite3.Row
        return con

    def init(self) -> None:
        parent = os.path.dirname(os.path.expanduser(self.path))
        if parent:
            os.makedirs(parent, exist_ok=True)
        con = self.connect()
        try:
            con.executescript(SCHEMA)
        finally:
            con.close()

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        con = self.connect()
        try:
            con.execute("BEGIN IMMEDIATE")
            try:
                yield con
            except BaseException:
                con.execute("ROLLBACK")
                raise
            con.execute("COMMIT")
        finally:
            con.close()

    @lock_retry()
    def increment(self, key: EdgeKey, count: int) -> int:
        if count <= 0:
            raise ValueError("increment count must be positive")
        with self._write() as con:
            con.execute(
                """
                INSERT INTO usage_edges(
                  target_id, target_type, source_id, source_type,
                  source_locale, source_version, method, slot_name, count
                ) VALUES (?,?,?,?,?,?,?,?,?)
                ON CONFLICT(
                  target_id, target_type, source_id, source_type,
                  source_locale, source_version, method, slot_name
                ) DO UPDATE SET count = count + excluded.count
                """,
                (*_key_params(key), count),
            )
            row = con.execute(f"SELECT count FROM usage_edges WHERE {_KEY_WHERE}", _key_params(key)).fetchone()
            return int(row["count"])

    @lock_retry()
    def decrement(self, key: EdgeKey, count: int | None) -> int:
        """Remove `count` usages from one row and return how many were removed.

        The row is deleted when it holds `count` or fewer usages (or when
        `count` is None), otherwise it is lowered by `count`. Returns 0 when no
        row matched.
        """
        params = _key_params(key)
        with self._write() as con:
            row = con.execute(f"SELECT count FROM usage_edges WHERE {_KEY_WHERE}", params).fetchone()
            if not row:
                return 0
            stored = int(row["count"])
            if count is None or stored <= count:
                con.execute(f"DELETE FROM usage_edges WHERE {_KEY_WHERE}", params)
                return stored
            con.execute(f"UPDATE usage_edges SET count = count - ? WHERE {_KEY_WHERE}", (count, *params))
            return count

    def get(self, key: EdgeKey) -> UsageEdge | None:
        con = self.connect()
        try:
            row = con.execute(f"SELECT * FROM usage_edges WHERE {_KEY_WHERE}", _key_params(key)).fetchone()
            return _row_to_edge(row) if row else None
        finally:
            con.close()

    @lock_retry()
    def delete_where(self, **filters: str | None) -> int:
        where, params = _where(filters)
        with self._write() as con:
            cur = con.execute(f"DELETE FROM usage_edges WHERE {where}", params)
            return cur.rowcount

    def select(self, *, order_by: str, **filters: str | None) -> list[UsageEdge]:
        where, params = _where(filters)
        con = self.connect()
        try:
            rows = con.execute(
                f"SELECT * FROM usage_edges WHERE {where} AND count > 0 ORDER BY {order_by}",
                params,
            ).fetchall()
            return [_row_to_edge(r) for r in rows]
        finally:
            con.close()

    def get_cursor(self, source_type: str) -> RecomputeCursor | None:
        con = self.connect()
        try:
            row = con.execute(
                "SELECT source_type, last_id, processed, total, updated_at FROM recompute_cursors WHERE source_type=?",
                (source_type,),
            ).fetchone()
            if not row:
                return None
            return RecomputeCursor(
                source_type=row["source_type"],
                last_id=row["last_id"],
                processed=int(row["processed"]),
                total=int(row["total"]),
                updated_at=float(row["updated_at"]),
            )
        finally:
            con.close()

    @lock_retry()
    def save_cursor(self, cursor: RecomputeCursor) -> None:
        cursor.updated_at = time.time()
        with self._write() as con:
            con.execute(
                """
                INSERT INTO recompute_cursors(source_type, last_id, processed, total, updated_at)
                VALUES(?,?,?,?,?)
                ON CONFLICT(source_type)
                DO UPDATE SET last_id=excluded.last_id, processed=excluded.processed,
                              total=excluded.total, updated_at=excluded.updated_at
                """,
                (cursor.source_type, cursor.last_id, cursor.processed, cursor.total, cursor.updated_at),
            )

    @lock_retry()
    def clear_cursor(self, source_type: str) -> None:
        with self._write() as con:
            con.execute("DELETE FROM recompute_cursors WHERE source_type=?", (source_type,))
