"""Ledger factory for choosing between the in-memory and SQLite backends."""

from pathlib import Path

from sse_ledger.adapters.ledger import AbstractLedger, InMemoryLedger
from sse_ledger.adapters.sqlite_ledger import SqliteLedger
from sse_ledger.config import Settings


def create_ledger(settings: Settings, *, sqlite_path: Path | None = None) -> AbstractLedger:
    """Create the ledger backend selected by configuration.

    Args:
        settings: Loaded settings
        sqlite_path: Explicit database path; forces the SQLite backend

    Returns:
        A ready-to-use ledger
    """
    if sqlite_path is not None:
        return SqliteLedger(sqlite_path)
    if settings.uses_sqlite():
        return SqliteLedger(settings.sqlite_path)
    return InMemoryLedger()
