"""Combined segment and index batches.

Both halves of a store request are validated before either is dispatched.
The two branches then run concurrently (or in order when configured) and the
call waits for both; the first failure, in branch order, is re-raised.
Nothing is compensated here: the invocation's unit of work discards every
staged write when the error leaves the contract.
"""

import asyncio
from collections.abc import Sequence
import logging

from sse_ledger.domain.requests import IndexBatch, SegmentBatch, StoreRequest
from sse_ledger.service_layer.index_store import IndexStore
from sse_ledger.service_layer.segment_store import SegmentStore


logger = logging.getLogger(__name__)


class BatchCoordinator:
    """Fan a store request out to the segment and index stores."""

    def __init__(self, segments: SegmentStore, index: IndexStore, *, concurrent: bool = True):
        self.segments = segments
        self.index = index
        self.concurrent = concurrent

    async def store(
        self,
        pointers: Sequence[str],
        ciphertexts: Sequence[bytes],
        tokens: Sequence[str],
        pointer_lists: Sequence[Sequence[str]],
    ) -> None:
        """Create segments and merge index entries from parallel arrays.

        Raises:
            LengthMismatchError: If either pair of arrays differs in length
            AlreadyExistsError: If any pointer already holds a segment
        """
        request = StoreRequest(
            segments=SegmentBatch.from_arrays(pointers, ciphertexts),
            indices=IndexBatch.from_arrays(tokens, pointer_lists),
        )
        await self.execute(request)

    async def execute(self, request: StoreRequest) -> None:
        """Run a parsed store request."""
        await self.segments.validate_batch(request.segments)

        if not self.concurrent:
            await self.segments.store_batch(request.segments, validated=True)
            await self.index.store_batch(request.indices)
        else:
            results = await asyncio.gather(
                self.segments.store_batch(request.segments, validated=True),
                self.index.store_batch(request.indices),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result

        logger.debug(
            "Stored %d segment(s) and %d index entries",
            len(request.segments),
            len(request.indices),
        )
