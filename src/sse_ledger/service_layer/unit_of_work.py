"""Unit of Work for ledger invocations.

One invocation of the contract runs inside one unit of work:
- Reads go to the backend ledger, overlaid with the invocation's own pending writes
- Writes and deletes are staged in memory
- ``commit()`` hands the staged write set to the backend in a single atomic ``apply``
- Leaving the context without committing discards the staged writes
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
import heapq
import logging

from sse_ledger.adapters.ledger import AbstractLedger, in_range
from sse_ledger.domain.errors import NotFoundError


logger = logging.getLogger(__name__)


class StagedLedger(AbstractLedger):
    """Ledger view that buffers changes on top of a backend ledger.

    Pending deletes are stored as ``None`` so they shadow backend values.
    """

    def __init__(self, backend: AbstractLedger):
        self.backend = backend
        self._pending: dict[str, bytes | None] = {}

    @property
    def pending(self) -> Mapping[str, bytes | None]:
        return dict(self._pending)

    def discard(self) -> None:
        self._pending.clear()

    async def exists(self, key: str) -> bool:
        if key in self._pending:
            return self._pending[key] is not None
        return await self.backend.exists(key)

    async def read(self, key: str) -> bytes:
        if key in self._pending:
            value = self._pending[key]
            if value is None:
                raise NotFoundError(key)
            return value
        return await self.backend.read(key)

    async def write(self, key: str, value: bytes) -> None:
        self._pending[key] = bytes(value)

    async def delete(self, key: str) -> None:
        if not await self.exists(key):
            raise NotFoundError(key)
        self._pending[key] = None

    async def range_scan(self, start_key: str = "", end_key: str = "") -> AsyncIterator[tuple[str, bytes]]:
        staged = sorted((key, value) for key, value in self._pending.items() if in_range(key, start_key, end_key))
        backend_rows = [row async for row in self.backend.range_scan(start_key, end_key) if row[0] not in self._pending]
        for key, value in heapq.merge(staged, backend_rows, key=lambda row: row[0]):
            if value is not None:
                yield key, value

    async def apply(self, changes: Mapping[str, bytes | None]) -> None:
        self._pending.update(changes)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work."""

    ledger: AbstractLedger

    async def __aenter__(self):
        """Enter transaction context."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit transaction context - rollback unless explicitly committed."""
        if not getattr(self, "_committed", False):
            await self.rollback()

    @abstractmethod
    async def commit(self):
        """Commit the transaction."""
        raise NotImplementedError

    @abstractmethod
    async def rollback(self):
        """Rollback the transaction."""
        raise NotImplementedError


class LedgerUnitOfWork(AbstractUnitOfWork):
    """Unit of Work staging one invocation's writes against a backend ledger."""

    def __init__(self, backend: AbstractLedger):
        self.backend = backend
        self.ledger = StagedLedger(backend)
        self._committed = False

    async def __aenter__(self):
        self.ledger = StagedLedger(self.backend)
        self._committed = False
        return self

    async def commit(self):
        """Apply every staged change to the backend in one step."""
        changes = self.ledger.pending
        await self.backend.apply(changes)
        self.ledger.discard()
        self._committed = True
        logger.debug("Unit of work committed %d change(s)", len(changes))

    async def rollback(self):
        """Discard staged changes."""
        discarded = len(self.ledger.pending)
        self.ledger.discard()
        self._committed = False
        if discarded:
            logger.debug("Unit of work rolled back %d staged change(s)", discarded)
