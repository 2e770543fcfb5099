"""Keyword search over the encrypted segment store.

A query is split on whitespace; every token's index entry contributes its
pointers, the union is resolved through the segment store, and a pointer
without a stored segment fails the whole search.
"""

import asyncio
import logging

from sse_ledger.domain.errors import InvalidRequestError, MissingSegmentError, NotFoundError
from sse_ledger.domain.keys import is_valid_identifier
from sse_ledger.service_layer.index_store import IndexStore
from sse_ledger.service_layer.segment_store import SegmentStore, segment_key


logger = logging.getLogger(__name__)

DEFAULT_MAX_QUERY_TOKENS = 256


def tokenize(query: str) -> list[str]:
    """Split a query on whitespace, dropping repeated tokens."""
    return list(dict.fromkeys(query.split()))


class SearchEngine:
    """Resolve keyword queries to ciphertexts."""

    def __init__(
        self,
        segments: SegmentStore,
        index: IndexStore,
        *,
        max_query_tokens: int = DEFAULT_MAX_QUERY_TOKENS,
    ):
        self.segments = segments
        self.index = index
        self.max_query_tokens = max_query_tokens

    async def collect_pointers(self, tokens: list[str]) -> list[str]:
        """Union the pointers of every indexed token in first-seen order."""
        pointers: dict[str, None] = {}
        for token in tokens:
            # A token that cannot be encoded can never have been indexed
            if not is_valid_identifier(token):
                continue
            entry = await self.index.get(token)
            if entry is None:
                continue
            pointers.update(dict.fromkeys(entry.pointers))
        return list(pointers)

    async def _resolve(self, pointer: str) -> bytes:
        try:
            return await self.segments.read(pointer)
        except NotFoundError:
            raise MissingSegmentError(pointer, segment_key(pointer)) from None

    async def resolve(self, pointers: list[str]) -> list[bytes]:
        """Read every pointer's ciphertext.

        Raises:
            MissingSegmentError: If any pointer has no stored segment
        """
        results = await asyncio.gather(*(self._resolve(pointer) for pointer in pointers), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def search(self, query: str) -> list[bytes]:
        """Return the ciphertexts of every segment matching any query token.

        Raises:
            InvalidRequestError: If the query has more tokens than allowed
            MissingSegmentError: If the index references a segment that is not stored
        """
        tokens = tokenize(query)
        if len(tokens) > self.max_query_tokens:
            raise InvalidRequestError(f"Query has {len(tokens)} tokens; at most {self.max_query_tokens} are allowed")
        if not tokens:
            return []

        pointers = await self.collect_pointers(tokens)
        ciphertexts = await self.resolve(pointers)
        logger.debug("Search matched %d token(s) to %d segment(s)", len(tokens), len(ciphertexts))
        return ciphertexts
