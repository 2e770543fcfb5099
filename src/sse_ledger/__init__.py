"""Ledger-backed store for client-encrypted segments with an inverted keyword index."""

from sse_ledger.adapters import AbstractLedger, InMemoryLedger, SqliteLedger, create_ledger
from sse_ledger.config import Settings
from sse_ledger.service_layer import SseContract


__version__ = "0.1.0"

__all__ = [
    "AbstractLedger",
    "InMemoryLedger",
    "Settings",
    "SqliteLedger",
    "SseContract",
    "create_ledger",
]
