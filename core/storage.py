from __future__ import annotations

import sqlite3
import threading
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Optional

from core.models import StatusSample, parse_ts

_local = threading.local()
_db_path: str | None = None


def init(db_path: str) -> None:
    """Set the database path and create tables."""
    global _db_path
    _db_path = db_path
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    _migrate(_get_conn())


def _get_conn() -> sqlite3.Connection:
    """Thread-local connection (sqlite3 objects can't cross threads)."""
    if getattr(_local, "conn", None) is None or getattr(_local, "path", None) != _db_path:
        _local.conn = sqlite3.connect(_db_path)
        _local.path = _db_path
        _local.conn.execute("PRAGMA journal_mode=WAL")
        _local.conn.row_factory = sqlite3.Row
    return _local.conn


def _migrate(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS samples (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp  TEXT NOT NULL,
            status     TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_samples_ts
            ON samples(timestamp);

        CREATE TABLE IF NOT EXISTS probe_state (
            id          INTEGER PRIMARY KEY CHECK (id = 1),
            status      TEXT NOT NULL,
            checked_at  TEXT NOT NULL
        );
    """)


def format_ts(ts: datetime) -> str:
    """Aware datetimes are stored as UTC with a Z suffix, naive ones as-is."""
    if ts.tzinfo is not None:
        return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return ts.strftime("%Y-%m-%dT%H:%M:%S")


# ── Samples ────────────────────────────────────────────

def append_sample(sample: StatusSample) -> bool:
    """Insert sample. Returns False if the status did not change."""
    conn = _get_conn()
    last = conn.execute(
        "SELECT status FROM samples ORDER BY timestamp DESC, id DESC LIMIT 1"
    ).fetchone()
    if last and last["status"] == sample.status.value:
        return False

    conn.execute(
        "INSERT INTO samples(timestamp, status) VALUES (?, ?)",
        (format_ts(sample.timestamp), sample.status.value),
    )
    conn.commit()
    return True


def fetch_samples(
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    tz: Optional[tzinfo] = None,
) -> list[StatusSample]:
    """All samples in [from, to], ascending by timestamp.

    Bounds are UTC; a date-only ``to`` covers its whole day. The status in
    force at ``from`` is carried in as a sample stamped at ``from``, since
    the log only holds transitions.
    """
    conn = _get_conn()
    where_clauses = ["1 = 1"]
    params: list = []
    if from_date:
        where_clauses.append("timestamp >= ?")
        params.append(from_date)
    if to_date:
        if len(to_date) == 10:
            where_clauses.append("timestamp < ?")
            params.append((date.fromisoformat(to_date) + timedelta(days=1)).isoformat())
        else:
            where_clauses.append("timestamp <= ?")
            params.append(to_date)

    rows = conn.execute(
        "SELECT timestamp, status FROM samples WHERE " + " AND ".join(where_clauses)
        + " ORDER BY timestamp, id",
        params,
    ).fetchall()
    samples = [StatusSample.from_record(r["status"], r["timestamp"], tz) for r in rows]

    if from_date:
        prev = conn.execute(
            "SELECT status FROM samples WHERE timestamp < ? "
            "ORDER BY timestamp DESC, id DESC LIMIT 1",
            (from_date,),
        ).fetchone()
        if prev:
            start = parse_ts(from_date).astimezone(tz or timezone.utc)
            samples.insert(0, StatusSample.from_record(prev["status"], start.isoformat(), tz))
    return samples


def get_last_sample(tz: Optional[tzinfo] = None) -> Optional[StatusSample]:
    row = _get_conn().execute(
        "SELECT timestamp, status FROM samples ORDER BY timestamp DESC, id DESC LIMIT 1"
    ).fetchone()
    if row:
        return StatusSample.from_record(row["status"], row["timestamp"], tz)
    return None


def count_samples() -> int:
    return _get_conn().execute("SELECT COUNT(*) FROM samples").fetchone()[0]


# ── Probe state ────────────────────────────────────────

def record_probe(sample: StatusSample) -> None:
    conn = _get_conn()
    conn.execute(
        "INSERT INTO probe_state(id, status, checked_at) VALUES (1, ?, ?) "
        "ON CONFLICT(id) DO UPDATE SET status = excluded.status, checked_at = excluded.checked_at",
        (sample.status.value, format_ts(sample.timestamp)),
    )
    conn.commit()


def get_probe_state() -> Optional[dict]:
    row = _get_conn().execute(
        "SELECT status, checked_at FROM probe_state WHERE id = 1"
    ).fetchone()
    return dict(row) if row else None
