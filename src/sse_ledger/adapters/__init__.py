"""Ledger gateway implementations."""

from sse_ledger.adapters.ledger import AbstractLedger, InMemoryLedger
from sse_ledger.adapters.ledger_factory import create_ledger
from sse_ledger.adapters.sqlite_ledger import SqliteLedger


__all__ = [
    "AbstractLedger",
    "InMemoryLedger",
    "SqliteLedger",
    "create_ledger",
]
