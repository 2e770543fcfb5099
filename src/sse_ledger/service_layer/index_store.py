"""Inverted index entries stored under the ``ix`` namespace.

Each entry is a JSON array of pointers. Entries only grow: ``add_entry``
stores the set union of the stored pointers and the new ones, so repeated
or overlapping merges never duplicate a pointer.
"""

from collections.abc import Iterable, Sequence
import logging

import orjson

from sse_ledger.adapters.ledger import AbstractLedger
from sse_ledger.domain.errors import CorruptEntryError
from sse_ledger.domain.keys import KeyCategory, encode_key, is_valid_identifier, validate_identifier
from sse_ledger.domain.model import IndexEntry
from sse_ledger.domain.requests import IndexBatch


logger = logging.getLogger(__name__)


def index_key(token: str) -> str:
    return encode_key(KeyCategory.INDEX, token)


def encode_pointers(pointers: Iterable[str]) -> bytes:
    return orjson.dumps(list(pointers))


def decode_pointers(key: str, payload: bytes) -> tuple[str, ...]:
    """Decode a stored entry, rejecting anything but a list of valid pointers."""
    try:
        pointers = orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        raise CorruptEntryError(key, f"invalid JSON ({exc})") from exc
    if not isinstance(pointers, list) or not all(isinstance(item, str) for item in pointers):
        raise CorruptEntryError(key, "expected a JSON array of pointer strings")
    for pointer in pointers:
        if not is_valid_identifier(pointer):
            raise CorruptEntryError(key, f"pointer {pointer!r} is not a valid segment pointer")
    return tuple(pointers)


class IndexStore:
    """Index repository on top of a ledger."""

    def __init__(self, ledger: AbstractLedger):
        self.ledger = ledger

    async def exists(self, token: str) -> bool:
        return await self.ledger.exists(index_key(token))

    async def get(self, token: str) -> IndexEntry | None:
        """Return the entry for ``token`` or None when the token was never indexed."""
        key = index_key(token)
        if not await self.ledger.exists(key):
            return None
        return IndexEntry(token=token, pointers=decode_pointers(key, await self.ledger.read(key)))

    async def add_entry(self, token: str, pointers: Sequence[str]) -> IndexEntry:
        """Merge ``pointers`` into the entry for ``token``, creating it if needed."""
        key = index_key(token)
        for pointer in pointers:
            validate_identifier(pointer, kind="segment pointer")

        current = await self.get(token)
        if current is None:
            entry = IndexEntry(token=token, pointers=tuple(pointers))
        else:
            entry = current.merged(pointers)
            if entry.pointers == current.pointers:
                logger.debug("Index entry %s already holds all %d pointer(s)", token, len(pointers))
                return current

        await self.ledger.write(key, encode_pointers(entry.pointers))
        logger.debug("Index entry %s now holds %d pointer(s)", token, len(entry.pointers))
        return entry

    async def add_entries(self, tokens: Sequence[str], pointer_lists: Sequence[Sequence[str]]) -> list[IndexEntry]:
        """Call ``add_entry`` once per ``(token, pointers)`` pair, in order.

        Raises:
            LengthMismatchError: If the two sequences differ in length
        """
        return await self.store_batch(IndexBatch.from_arrays(tokens, pointer_lists))

    async def store_batch(self, batch: IndexBatch) -> list[IndexEntry]:
        """Merge every pair of an already validated batch."""
        entries = [await self.add_entry(item.token, item.pointers) for item in batch.items]
        if entries:
            logger.debug("Merged %d index entries in batch", len(entries))
        return entries
