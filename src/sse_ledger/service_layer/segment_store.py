"""CRUD over encrypted segments.

Segments live under the ``ct`` namespace of the ledger. The store enforces
the existence invariants: create only onto a free pointer, update and delete
only a live one.
"""

from collections.abc import Sequence
import logging

from pydantic import ValidationError

from sse_ledger.adapters.ledger import AbstractLedger
from sse_ledger.domain.errors import AlreadyExistsError, InvalidRequestError, NotFoundError
from sse_ledger.domain.keys import KeyCategory, encode_key
from sse_ledger.domain.model import Segment
from sse_ledger.domain.requests import SegmentBatch


logger = logging.getLogger(__name__)


def segment_key(pointer: str) -> str:
    return encode_key(KeyCategory.SEGMENT, pointer)


def _build_segment(pointer: str, ciphertext: bytes) -> Segment:
    try:
        segment = Segment(pointer=pointer, ciphertext=ciphertext)
    except ValidationError as exc:
        raise InvalidRequestError(f"Invalid segment {pointer!r}: {exc.error_count()} validation error(s)") from exc
    return segment


class SegmentStore:
    """Segment repository on top of a ledger."""

    def __init__(self, ledger: AbstractLedger):
        self.ledger = ledger

    async def exists(self, pointer: str) -> bool:
        return await self.ledger.exists(segment_key(pointer))

    async def create(self, pointer: str, ciphertext: bytes) -> Segment:
        """Store a new segment.

        Raises:
            AlreadyExistsError: If a live segment is already stored at ``pointer``
        """
        segment = _build_segment(pointer, ciphertext)
        key = segment.key
        if await self.ledger.exists(key):
            raise AlreadyExistsError(key)
        await self.ledger.write(key, segment.ciphertext)
        logger.debug("Created segment %s (%d bytes)", pointer, len(segment.ciphertext))
        return segment

    async def read(self, pointer: str) -> bytes:
        """Return the ciphertext stored at ``pointer``.

        Raises:
            NotFoundError: If no segment is stored at ``pointer``
        """
        return await self.ledger.read(segment_key(pointer))

    async def update(self, pointer: str, ciphertext: bytes) -> Segment:
        """Overwrite an existing segment.

        Raises:
            NotFoundError: If no segment is stored at ``pointer``
        """
        segment = _build_segment(pointer, ciphertext)
        key = segment.key
        if not await self.ledger.exists(key):
            raise NotFoundError(key)
        await self.ledger.write(key, segment.ciphertext)
        logger.debug("Updated segment %s (%d bytes)", pointer, len(segment.ciphertext))
        return segment

    async def delete(self, pointer: str) -> None:
        """Remove a segment; index entries referencing it are left untouched.

        Raises:
            NotFoundError: If no segment is stored at ``pointer``
        """
        await self.ledger.delete(segment_key(pointer))
        logger.debug("Deleted segment %s", pointer)

    async def validate_batch(self, batch: SegmentBatch) -> None:
        """Reject a batch that would fail part-way through.

        Raises:
            AlreadyExistsError: For a pointer repeated inside the batch or already stored
        """
        seen: set[str] = set()
        for pointer in batch.pointers:
            key = segment_key(pointer)
            if pointer in seen or await self.ledger.exists(key):
                raise AlreadyExistsError(key)
            seen.add(pointer)

    async def create_batch(self, pointers: Sequence[str], ciphertexts: Sequence[bytes]) -> list[Segment]:
        """Create one segment per ``(pointer, ciphertext)`` pair, in order.

        Raises:
            LengthMismatchError: If the two sequences differ in length
            AlreadyExistsError: If any pointer is taken; nothing is written
        """
        return await self.store_batch(SegmentBatch.from_arrays(pointers, ciphertexts))

    async def store_batch(self, batch: SegmentBatch, *, validated: bool = False) -> list[Segment]:
        """Create every segment of an already parsed batch."""
        if not validated:
            await self.validate_batch(batch)
        created = [await self.create(item.pointer, item.data) for item in batch.items]
        if created:
            logger.debug("Created %d segment(s) in batch", len(created))
        return created
