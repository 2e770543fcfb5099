"""Ledger gateway abstraction and the in-memory implementation."""

from abc import ABC, abstractmethod
from bisect import bisect_left, insort
from collections.abc import AsyncIterator, Mapping
import logging

from sse_ledger.domain.errors import NotFoundError


logger = logging.getLogger(__name__)


def in_range(key: str, start_key: str, end_key: str) -> bool:
    """Check ``start_key <= key < end_key`` with empty bounds meaning open."""
    if start_key and key < start_key:
        return False
    return not (end_key and key >= end_key)


class AbstractLedger(ABC):
    """Ordered key-value store the core is built on.

    Implementations provide per-call persistence; the unit of work layers
    invocation-level atomic commit on top through ``apply``.
    """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether ``key`` holds a value."""
        raise NotImplementedError

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Return the value stored at ``key``.

        Raises:
            NotFoundError: If the key is absent
        """
        raise NotImplementedError

    @abstractmethod
    async def write(self, key: str, value: bytes) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``.

        Raises:
            NotFoundError: If the key is absent
        """
        raise NotImplementedError

    @abstractmethod
    def range_scan(self, start_key: str = "", end_key: str = "") -> AsyncIterator[tuple[str, bytes]]:
        """Yield ``(key, value)`` pairs in key order within ``[start_key, end_key)``.

        Empty bounds scan the whole namespace on that side.
        """
        raise NotImplementedError

    @abstractmethod
    async def apply(self, changes: Mapping[str, bytes | None]) -> None:
        """Atomically apply a write set; ``None`` values delete their key."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""
        return None


class InMemoryLedger(AbstractLedger):
    """Dict-backed ledger with a sorted key list for range scans."""

    def __init__(self, initial: Mapping[str, bytes] | None = None):
        self._values: dict[str, bytes] = {}
        self._keys: list[str] = []
        for key, value in (initial or {}).items():
            self._put(key, bytes(value))

    def _put(self, key: str, value: bytes) -> None:
        if key not in self._values:
            insort(self._keys, key)
        self._values[key] = value

    def _remove(self, key: str) -> None:
        del self._values[key]
        self._keys.pop(bisect_left(self._keys, key))

    async def exists(self, key: str) -> bool:
        return key in self._values

    async def read(self, key: str) -> bytes:
        try:
            return self._values[key]
        except KeyError:
            raise NotFoundError(key) from None

    async def write(self, key: str, value: bytes) -> None:
        self._put(key, bytes(value))

    async def delete(self, key: str) -> None:
        if key not in self._values:
            raise NotFoundError(key)
        self._remove(key)

    async def range_scan(self, start_key: str = "", end_key: str = "") -> AsyncIterator[tuple[str, bytes]]:
        start = bisect_left(self._keys, start_key) if start_key else 0
        # Snapshot keys so writers during iteration do not shift positions
        for key in list(self._keys[start:]):
            if not in_range(key, start_key, end_key):
                break
            value = self._values.get(key)
            if value is not None:
                yield key, value

    async def apply(self, changes: Mapping[str, bytes | None]) -> None:
        for key, value in changes.items():
            if value is None:
                if key in self._values:
                    self._remove(key)
            else:
                self._put(key, bytes(value))
        logger.debug("Applied %d ledger change(s) in memory", len(changes))

    def __len__(self) -> int:
        return len(self._values)
