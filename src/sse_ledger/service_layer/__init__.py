"""Service layer - segment and index stores, search, and the invocation boundary.

- Stores work against whatever ledger they are handed
- The contract runs every operation inside a Unit of Work
"""

from .batch_coordinator import BatchCoordinator
from .contract import SseContract
from .index_store import IndexStore
from .namespace_dump import NamespaceDump
from .search_engine import SearchEngine, tokenize
from .segment_store import SegmentStore
from .unit_of_work import AbstractUnitOfWork, LedgerUnitOfWork, StagedLedger


__all__ = [
    "AbstractUnitOfWork",
    "BatchCoordinator",
    "IndexStore",
    "LedgerUnitOfWork",
    "NamespaceDump",
    "SearchEngine",
    "SegmentStore",
    "SseContract",
    "StagedLedger",
    "tokenize",
]
