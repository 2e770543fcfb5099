"""Shared SQLite PRAGMA helpers for the ledger database."""

from __future__ import annotations

import sqlite3


def apply_ledger_pragmas(
    conn: sqlite3.Connection,
    *,
    wal: bool = True,
    cache_size_kb: int = -16384,
    busy_timeout_ms: int | None = 30000,
    synchronous: str = "NORMAL",
) -> None:
    """Apply durability and concurrency PRAGMAs for the ledger table."""
    if busy_timeout_ms is not None:
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms}")
    if wal:
        conn.execute("PRAGMA journal_mode = WAL")
    conn.execute(f"PRAGMA synchronous = {synchronous}")
    conn.execute(f"PRAGMA cache_size = {cache_size_kb}")
    conn.execute("PRAGMA temp_store = MEMORY")
