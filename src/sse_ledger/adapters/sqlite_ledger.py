"""SQLite-backed ledger.

One ``WITHOUT ROWID`` table clustered on the key gives ordered range scans
for free. Blocking sqlite calls run in a worker thread so the event loop is
never stalled; a lock serializes access to the shared connection.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
import logging
from pathlib import Path
import sqlite3
import threading

import anyio

from sse_ledger.adapters.ledger import AbstractLedger
from sse_ledger.adapters.sqlite_pragmas import apply_ledger_pragmas
from sse_ledger.domain.errors import NotFoundError


logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

_SCHEMA = "CREATE TABLE IF NOT EXISTS ledger (key TEXT PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID"


class SqliteLedger(AbstractLedger):
    """Ledger persisted in a single SQLite database file."""

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if str(db_path) == MEMORY_DATABASE else Path(db_path).expanduser()
        self._lock = threading.Lock()
        self._conn = self._connect()

    def _connect(self) -> sqlite3.Connection:
        in_memory = str(self.db_path) == MEMORY_DATABASE
        if not in_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False, isolation_level=None)
        apply_ledger_pragmas(conn, wal=not in_memory)
        conn.execute(_SCHEMA)
        logger.debug("Opened SQLite ledger at %s", self.db_path)
        return conn

    async def _run(self, func, *args):
        def _locked():
            with self._lock:
                return func(*args)

        return await anyio.to_thread.run_sync(_locked)

    def _fetch_value(self, key: str) -> bytes | None:
        row = self._conn.execute("SELECT value FROM ledger WHERE key = ?", (key,)).fetchone()
        return None if row is None else bytes(row[0])

    def _write_sync(self, key: str, value: bytes) -> None:
        self._conn.execute("INSERT OR REPLACE INTO ledger (key, value) VALUES (?, ?)", (key, value))

    def _delete_sync(self, key: str) -> int:
        return self._conn.execute("DELETE FROM ledger WHERE key = ?", (key,)).rowcount

    def _scan_sync(self, start_key: str, end_key: str) -> list[tuple[str, bytes]]:
        clauses: list[str] = []
        params: list[str] = []
        if start_key:
            clauses.append("key >= ?")
            params.append(start_key)
        if end_key:
            clauses.append("key < ?")
            params.append(end_key)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._conn.execute(f"SELECT key, value FROM ledger{where} ORDER BY key", params).fetchall()
        return [(key, bytes(value)) for key, value in rows]

    def _apply_sync(self, changes: Mapping[str, bytes | None]) -> None:
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            for key, value in changes.items():
                if value is None:
                    self._delete_sync(key)
                else:
                    self._write_sync(key, bytes(value))
        except Exception:
            self._conn.execute("ROLLBACK")
            raise
        self._conn.execute("COMMIT")

    async def exists(self, key: str) -> bool:
        return await self._run(self._fetch_value, key) is not None

    async def read(self, key: str) -> bytes:
        value = await self._run(self._fetch_value, key)
        if value is None:
            raise NotFoundError(key)
        return value

    async def write(self, key: str, value: bytes) -> None:
        await self._run(self._write_sync, key, bytes(value))

    async def delete(self, key: str) -> None:
        if await self._run(self._delete_sync, key) == 0:
            raise NotFoundError(key)

    async def range_scan(self, start_key: str = "", end_key: str = "") -> AsyncIterator[tuple[str, bytes]]:
        for key, value in await self._run(self._scan_sync, start_key, end_key):
            yield key, value

    async def apply(self, changes: Mapping[str, bytes | None]) -> None:
        if not changes:
            return
        await self._run(self._apply_sync, dict(changes))
        logger.debug("Committed %d ledger change(s) to %s", len(changes), self.db_path)

    async def close(self) -> None:
        await self._run(self._conn.close)

    async def count(self) -> int:
        """Count stored keys."""
        row = await self._run(lambda: self._conn.execute("SELECT COUNT(*) FROM ledger").fetchone())
        return int(row[0])
