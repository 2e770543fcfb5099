"""Unit tests for SseContract invocations.

Each public call is one invocation: all of its writes land, or none do.
"""

import asyncio

import orjson
import pytest

from sse_ledger.adapters.ledger import InMemoryLedger
from sse_ledger.config import Settings
from sse_ledger.domain.errors import (
    AlreadyExistsError,
    CorruptEntryError,
    InvalidRequestError,
    LedgerError,
    LengthMismatchError,
    MissingSegmentError,
    NotFoundError,
)
from sse_ledger.domain.keys import KeyCategory
from sse_ledger.domain.requests import SegmentPair
from sse_ledger.service_layer.contract import SseContract
from sse_ledger.service_layer.index_store import IndexStore


@pytest.mark.unit
class TestGenericAssets:
    """Raw key operations bypass the segment and index namespaces."""

    @pytest.mark.asyncio
    async def test_write_read_exists_delete(self, contract: SseContract):
        await contract.write("custom", "value")

        assert await contract.exists("custom")
        assert await contract.read("custom") == b"value"

        await contract.delete("custom")
        assert not await contract.exists("custom")

    @pytest.mark.asyncio
    async def test_read_and_delete_missing(self, contract: SseContract):
        with pytest.raises(NotFoundError):
            await contract.read("missing")
        with pytest.raises(NotFoundError):
            await contract.delete("missing")

    @pytest.mark.asyncio
    async def test_empty_key_is_rejected(self, contract: SseContract):
        with pytest.raises(InvalidRequestError):
            await contract.write("", b"v")

    @pytest.mark.asyncio
    async def test_empty_value_is_rejected(self, contract: SseContract, ledger: InMemoryLedger):
        with pytest.raises(InvalidRequestError):
            await contract.write("k", b"")

        assert not await contract.exists("k")
        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_non_bytes_value_is_rejected(self, contract: SseContract, ledger: InMemoryLedger):
        with pytest.raises(InvalidRequestError):
            await contract.write("k", 42)  # type: ignore[arg-type]

        assert len(ledger) == 0


@pytest.mark.unit
class TestSegments:
    @pytest.mark.asyncio
    async def test_store_and_read_segment(self, contract: SseContract, ledger: InMemoryLedger):
        await contract.store_segment("p1", "cipher")

        assert await contract.read_segment("p1") == b"cipher"
        assert await ledger.read("ct:p1") == b"cipher"

    @pytest.mark.asyncio
    async def test_update_and_delete_segment(self, contract: SseContract):
        await contract.store_segment("p1", b"c1")
        await contract.update_segment("p1", b"c2")
        assert await contract.read_segment("p1") == b"c2"

        await contract.delete_segment("p1")
        with pytest.raises(NotFoundError):
            await contract.read_segment("p1")

    @pytest.mark.asyncio
    async def test_store_segments_rejects_taken_pointer_atomically(
        self, contract: SseContract, ledger: InMemoryLedger
    ):
        await contract.store_segment("p2", b"old")

        with pytest.raises(AlreadyExistsError):
            await contract.store_segments(["p1", "p2"], [b"c1", b"c2"])

        assert [key async for key, _ in ledger.range_scan()] == ["ct:p2"]

    @pytest.mark.asyncio
    async def test_store_segments_from_json_pairs(self, contract: SseContract):
        await contract.store_segments_from_pairs('[{"pointer": "p1", "data": "c1"}, {"pointer": "p2", "data": "c2"}]')

        assert await contract.read_segment("p2") == b"c2"

    @pytest.mark.asyncio
    async def test_store_segments_from_models(self, contract: SseContract):
        await contract.store_segments_from_pairs([SegmentPair(pointer="p1", data=b"c1")])

        assert await contract.read_segment("p1") == b"c1"


@pytest.mark.unit
class TestIndexAndSearch:
    @pytest.mark.asyncio
    async def test_store_then_search(self, contract: SseContract):
        await contract.store(["p1", "p2", "p3"], [b"c1", b"c2", b"c3"], ["t1", "t2"], [["p1", "p2"], ["p2", "p3"]])

        assert await contract.search("t1 t2") == [b"c1", b"c2", b"c3"]
        assert await contract.search("missing") == []

    @pytest.mark.asyncio
    async def test_add_index_merges_across_invocations(self, contract: SseContract):
        await contract.store_segments(["p1", "p2"], [b"c1", b"c2"])
        await contract.add_index("t1", ["p1"])
        await contract.add_indices(["t1"], [["p2", "p1"]])

        assert await contract.search("t1") == [b"c1", b"c2"]

    @pytest.mark.asyncio
    async def test_add_indices_from_pairs_accepts_hash_alias(self, contract: SseContract):
        await contract.store_segment("p1", b"c1")
        await contract.add_indices_from_pairs([{"hash": "h1", "pointers": ["p1"]}])

        assert await contract.search("h1") == [b"c1"]

    @pytest.mark.asyncio
    async def test_store_from_pairs(self, contract: SseContract):
        await contract.store_from_pairs(
            '[{"pointer": "p1", "data": "c1"}]',
            b'[{"token": "t1", "pointers": ["p1"]}]',
        )

        assert await contract.search("t1") == [b"c1"]

    @pytest.mark.asyncio
    async def test_search_reports_missing_segment(self, contract: SseContract):
        await contract.add_index("t1", ["ghost"])

        with pytest.raises(MissingSegmentError):
            await contract.search("t1")

    @pytest.mark.asyncio
    async def test_deleting_a_segment_keeps_its_index_entry(self, contract: SseContract, ledger: InMemoryLedger):
        await contract.store(["p1"], [b"c1"], ["t1"], [["p1"]])
        await contract.delete_segment("p1")

        assert await ledger.exists("ix:t1")
        with pytest.raises(MissingSegmentError):
            await contract.search("t1")


@pytest.mark.unit
class TestAtomicity:
    """A failed invocation leaves the ledger exactly as it found it."""

    @pytest.mark.asyncio
    async def test_length_mismatch_writes_nothing(self, contract: SseContract, ledger: InMemoryLedger):
        with pytest.raises(LengthMismatchError):
            await contract.store(["p1", "p2"], [b"c1"], [], [])

        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_failure_after_partial_writes_rolls_back(
        self, contract: SseContract, ledger: InMemoryLedger, monkeypatch
    ):
        async def failing_store_batch(self, batch):
            raise RuntimeError("index unavailable")

        monkeypatch.setattr(IndexStore, "store_batch", failing_store_batch)

        with pytest.raises(RuntimeError):
            await contract.store(["p1"], [b"c1"], ["t1"], [["p1"]])

        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_ledger_error_inside_invocation_discards_writes(self, contract: SseContract, ledger: InMemoryLedger):
        with pytest.raises(LedgerError):
            async with contract.invocation("custom") as scope:
                await scope.segments.create("p1", b"c1")
                assert await scope.segments.read("p1") == b"c1"
                raise LedgerError("stop")

        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_readonly_invocation_never_commits(self, contract: SseContract, ledger: InMemoryLedger):
        async with contract.invocation("peek", readonly=True) as scope:
            await scope.ledger.write("k", b"v")

        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_sequential_batches_setting(self, ledger: InMemoryLedger):
        contract = SseContract(ledger, Settings(concurrent_batches=False))  # type: ignore[call-arg]

        await contract.store(["p1"], [b"c1"], ["t1"], [["p1"]])

        assert await contract.search("t1") == [b"c1"]


@pytest.mark.unit
class TestNamespace:
    @pytest.mark.asyncio
    async def test_read_all_empty(self, contract: SseContract):
        assert await contract.read_all() == []
        assert await contract.read_all_json() == "[]"

    @pytest.mark.asyncio
    async def test_read_all_and_export(self, contract: SseContract):
        await contract.store(["p1", "p2"], [b"c1", b"c2"], ["t1"], [["p1"]])
        await contract.write("custom", b"raw")

        assert await contract.read_all() == [b"c1", b"c2", b"raw", b'["p1"]']
        assert orjson.loads(await contract.read_all_json()) == ["c1", "c2", "raw", '["p1"]']

        assets = await contract.export()
        assert [asset.category for asset in assets] == [
            KeyCategory.SEGMENT,
            KeyCategory.SEGMENT,
            None,
            KeyCategory.INDEX,
        ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_from_settings_uses_configured_backend(tmp_path):
    settings = Settings(ledger_backend="sqlite", sqlite_path=tmp_path / "ledger.db")  # type: ignore[call-arg]

    async with SseContract.from_settings(settings) as contract:
        await contract.store_segment("p1", b"c1")
        assert await contract.read_segment("p1") == b"c1"

    async with SseContract.from_settings(settings) as reopened:
        assert await reopened.read_all() == [b"c1"]


@pytest.mark.unit
class TestConcurrentInvocations:
    """Overlapping writing calls on one contract must not lose each other's changes."""

    @pytest.mark.asyncio
    async def test_concurrent_index_merges_keep_every_pointer(self, contract: SseContract):
        await asyncio.gather(
            contract.store([], [], ["t"], [["a"]]),
            contract.store([], [], ["t"], [["b"]]),
        )

        assert sorted(orjson.loads(await contract.read("ix:t"))) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_many_concurrent_writers(self, contract: SseContract):
        pointers = [f"p{i}" for i in range(20)]

        await asyncio.gather(*(contract.add_index("t", [pointer]) for pointer in pointers))

        assert sorted(orjson.loads(await contract.read("ix:t"))) == sorted(pointers)

    @pytest.mark.asyncio
    async def test_concurrent_segment_creates_cannot_both_succeed(self, contract: SseContract):
        results = await asyncio.gather(
            contract.store_segment("p1", b"first"),
            contract.store_segment("p1", b"second"),
            return_exceptions=True,
        )

        assert sum(isinstance(result, AlreadyExistsError) for result in results) == 1
        assert await contract.read_segment("p1") in (b"first", b"second")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_query_over_token_limit_is_rejected(ledger: InMemoryLedger):
    contract = SseContract(ledger, Settings(max_query_tokens=2))  # type: ignore[call-arg]

    with pytest.raises(InvalidRequestError):
        await contract.search("a b c")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_search_over_raw_written_entry_with_bad_pointer(contract: SseContract):
    await contract.write("ix:t1", b'["a b"]')

    with pytest.raises(CorruptEntryError):
        await contract.search("t1")
