"""Public operation surface of the encrypted segment ledger.

Every public method is one invocation: it runs inside its own unit of work,
span and metrics scope, and either commits all of its writes or none of them.
Read-only operations never commit. Writing invocations on one contract are
serialized.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass
import logging
from typing import Any

import orjson

from sse_ledger.adapters.ledger import AbstractLedger
from sse_ledger.adapters.ledger_factory import create_ledger
from sse_ledger.config import Settings
from sse_ledger.domain.errors import InvalidRequestError, LedgerError
from sse_ledger.domain.model import GenericAsset
from sse_ledger.domain.requests import IndexBatch, SegmentBatch, StoreRequest
from sse_ledger.observability.context import bind_invocation
from sse_ledger.observability.metrics import (
    ERROR_COUNT,
    INVOCATION_COUNT,
    INVOCATION_LATENCY,
    LAST_COMMIT_CHANGES,
    SEARCH_RESULT_COUNT,
    track_latency,
)
from sse_ledger.observability.tracing import create_span
from sse_ledger.service_layer.batch_coordinator import BatchCoordinator
from sse_ledger.service_layer.index_store import IndexStore
from sse_ledger.service_layer.namespace_dump import NamespaceDump
from sse_ledger.service_layer.search_engine import SearchEngine
from sse_ledger.service_layer.segment_store import SegmentStore
from sse_ledger.service_layer.unit_of_work import LedgerUnitOfWork, StagedLedger


logger = logging.getLogger(__name__)


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise InvalidRequestError(f"Expected bytes or str value, got {type(value).__name__}")


def _check_raw_key(key: str) -> str:
    if not isinstance(key, str) or not key:
        raise InvalidRequestError("Ledger key must be a non-empty string")
    return key


@dataclass(slots=True)
class InvocationScope:
    """Components bound to one invocation's staged ledger."""

    ledger: StagedLedger
    segments: SegmentStore
    index: IndexStore
    search: SearchEngine
    batches: BatchCoordinator
    dump: NamespaceDump


class SseContract:
    """Searchable-encryption contract over an injected ledger."""

    def __init__(self, ledger: AbstractLedger, settings: Settings | None = None):
        self.ledger = ledger
        self.settings = settings or Settings()
        # Writing invocations run one at a time so each commits against the state it read
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SseContract:
        """Build a contract on the ledger backend selected by configuration."""
        resolved = settings or Settings()
        return cls(create_ledger(resolved), resolved)

    async def close(self) -> None:
        await self.ledger.close()

    async def __aenter__(self) -> SseContract:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _bind(self, staged: StagedLedger) -> InvocationScope:
        segments = SegmentStore(staged)
        index = IndexStore(staged)
        return InvocationScope(
            ledger=staged,
            segments=segments,
            index=index,
            search=SearchEngine(segments, index, max_query_tokens=self.settings.max_query_tokens),
            batches=BatchCoordinator(segments, index, concurrent=self.settings.concurrent_batches),
            dump=NamespaceDump(staged),
        )

    @asynccontextmanager
    async def invocation(self, operation: str, *, readonly: bool = False) -> AsyncIterator[InvocationScope]:
        """Run one invocation: bind context, open a span, stage writes, commit on success."""
        invocation_id = bind_invocation(operation)
        attributes = {"ledger.operation": operation, "ledger.readonly": readonly, "ledger.invocation_id": invocation_id}
        with track_latency(INVOCATION_LATENCY, operation=operation), create_span(
            f"ledger.{operation}", attributes=attributes
        ):
            async with nullcontext() if readonly else self._write_lock, LedgerUnitOfWork(self.ledger) as uow:
                try:
                    yield self._bind(uow.ledger)
                    if not readonly:
                        changes = len(uow.ledger.pending)
                        await uow.commit()
                        LAST_COMMIT_CHANGES.labels(operation=operation).set(changes)
                except LedgerError as exc:
                    INVOCATION_COUNT.labels(operation=operation, status="error").inc()
                    ERROR_COUNT.labels(operation=operation, error_type=type(exc).__name__).inc()
                    logger.warning("Invocation %s failed: %s", operation, exc)
                    raise
                except Exception as exc:
                    INVOCATION_COUNT.labels(operation=operation, status="error").inc()
                    ERROR_COUNT.labels(operation=operation, error_type=type(exc).__name__).inc()
                    logger.exception("Invocation %s failed unexpectedly", operation)
                    raise
        INVOCATION_COUNT.labels(operation=operation, status="ok").inc()
        logger.info("Invocation %s completed", operation, extra={"readonly": readonly})

    # -------- Generic assets -------- #

    async def exists(self, key: str) -> bool:
        async with self.invocation("exists", readonly=True) as scope:
            return await scope.ledger.exists(_check_raw_key(key))

    async def read(self, key: str) -> bytes:
        async with self.invocation("read", readonly=True) as scope:
            return await scope.ledger.read(_check_raw_key(key))

    async def write(self, key: str, value: bytes | str) -> None:
        """Store a raw value at ``key``. Empty values are rejected."""
        async with self.invocation("write") as scope:
            data = _as_bytes(value)
            if not data:
                raise InvalidRequestError("Ledger value must not be empty")
            await scope.ledger.write(_check_raw_key(key), data)

    async def delete(self, key: str) -> None:
        async with self.invocation("delete") as scope:
            await scope.ledger.delete(_check_raw_key(key))

    # -------- Encrypted segments -------- #

    async def store_segment(self, pointer: str, ciphertext: bytes | str) -> None:
        async with self.invocation("store_segment") as scope:
            await scope.segments.create(pointer, _as_bytes(ciphertext))

    async def store_segments(self, pointers: Sequence[str], ciphertexts: Sequence[bytes | str]) -> None:
        async with self.invocation("store_segments") as scope:
            await scope.segments.create_batch(pointers, ciphertexts)

    async def store_segments_from_pairs(self, pairs: Any) -> None:
        """Create segments from ``{pointer, data}`` pairs, dicts, or their JSON document."""
        async with self.invocation("store_segments_from_pairs") as scope:
            await scope.segments.store_batch(SegmentBatch.from_pairs(pairs))

    async def read_segment(self, pointer: str) -> bytes:
        async with self.invocation("read_segment", readonly=True) as scope:
            return await scope.segments.read(pointer)

    async def update_segment(self, pointer: str, ciphertext: bytes | str) -> None:
        async with self.invocation("update_segment") as scope:
            await scope.segments.update(pointer, _as_bytes(ciphertext))

    async def delete_segment(self, pointer: str) -> None:
        async with self.invocation("delete_segment") as scope:
            await scope.segments.delete(pointer)

    # -------- Index -------- #

    async def add_index(self, token: str, pointers: Sequence[str]) -> None:
        async with self.invocation("add_index") as scope:
            await scope.index.add_entry(token, list(pointers))

    async def add_indices(self, tokens: Sequence[str], pointer_lists: Sequence[Sequence[str]]) -> None:
        async with self.invocation("add_indices") as scope:
            await scope.index.add_entries(tokens, pointer_lists)

    async def add_indices_from_pairs(self, pairs: Any) -> None:
        """Merge ``{token, pointers}`` pairs (``hash`` accepted for ``token``)."""
        async with self.invocation("add_indices_from_pairs") as scope:
            await scope.index.store_batch(IndexBatch.from_pairs(pairs))

    # -------- Combined -------- #

    async def store(
        self,
        pointers: Sequence[str],
        ciphertexts: Sequence[bytes | str],
        tokens: Sequence[str],
        pointer_lists: Sequence[Sequence[str]],
    ) -> None:
        async with self.invocation("store") as scope:
            await scope.batches.store(pointers, ciphertexts, tokens, pointer_lists)

    async def store_from_pairs(self, segment_pairs: Any, index_pairs: Any) -> None:
        async with self.invocation("store_from_pairs") as scope:
            request = StoreRequest(
                segments=SegmentBatch.from_pairs(segment_pairs),
                indices=IndexBatch.from_pairs(index_pairs),
            )
            await scope.batches.execute(request)

    async def search(self, query: str) -> list[bytes]:
        """Return the ciphertexts of every segment indexed under any query token.

        Unknown tokens contribute nothing. A query with more distinct tokens than
        ``Settings.max_query_tokens`` (256 by default) is rejected.

        Raises:
            MissingSegmentError: If an index entry points at a segment that is not stored
            InvalidRequestError: If the query exceeds the token limit
        """
        async with self.invocation("search", readonly=True) as scope:
            results = await scope.search.search(query)
        SEARCH_RESULT_COUNT.labels().observe(len(results))
        return results

    # -------- Namespace -------- #

    async def read_all(self) -> list[bytes]:
        async with self.invocation("read_all", readonly=True) as scope:
            return await scope.dump.read_all()

    async def read_all_json(self) -> str:
        """Return every stored value as a JSON array of UTF-8 strings."""
        values = await self.read_all()
        return orjson.dumps([value.decode("utf-8", errors="replace") for value in values]).decode("utf-8")

    async def export(self) -> list[GenericAsset]:
        async with self.invocation("export", readonly=True) as scope:
            return await scope.dump.export()
