"""Unit tests for domain value objects and request structures."""

from pydantic import ValidationError
import pytest

from sse_ledger.domain.errors import InvalidRequestError, LengthMismatchError
from sse_ledger.domain.keys import KeyCategory
from sse_ledger.domain.model import GenericAsset, IndexEntry, Segment
from sse_ledger.domain.requests import IndexBatch, IndexPair, SegmentBatch, SegmentPair, StoreRequest


pytestmark = pytest.mark.unit


class TestSegment:
    def test_key_uses_segment_namespace(self):
        segment = Segment(pointer="p1", ciphertext=b"\x00\x01")
        assert segment.key == "ct:p1"

    def test_empty_ciphertext_is_rejected(self):
        with pytest.raises(ValidationError):
            Segment(pointer="p1", ciphertext=b"")

    def test_is_immutable(self):
        segment = Segment(pointer="p1", ciphertext=b"x")
        with pytest.raises((AttributeError, TypeError, ValidationError)):
            segment.pointer = "p2"  # type: ignore[misc]


class TestIndexEntry:
    def test_duplicates_are_removed_keeping_first_seen_order(self):
        entry = IndexEntry(token="t", pointers=("b", "a", "b", "c", "a"))
        assert entry.pointers == ("b", "a", "c")

    def test_merged_is_a_set_union(self):
        entry = IndexEntry(token="t", pointers=("a", "b"))
        merged = entry.merged(["b", "c"])
        assert merged.pointers == ("a", "b", "c")
        assert entry.pointers == ("a", "b")

    def test_key_uses_index_namespace(self):
        assert IndexEntry(token="kw").key == "ix:kw"


def test_generic_asset_defaults():
    asset = GenericAsset(key="raw")
    assert asset.value == b""
    assert asset.category is None
    assert GenericAsset(key="ct:p", value=b"v", category=KeyCategory.SEGMENT).category is KeyCategory.SEGMENT


class TestSegmentBatch:
    def test_from_arrays_pairs_items_in_order(self):
        batch = SegmentBatch.from_arrays(["p1", "p2"], [b"c1", "c2"])
        assert batch.pointers == ["p1", "p2"]
        assert [item.data for item in batch.items] == [b"c1", b"c2"]

    def test_from_arrays_length_mismatch(self):
        with pytest.raises(LengthMismatchError) as excinfo:
            SegmentBatch.from_arrays(["p1", "p2"], [b"c1"])
        assert (excinfo.value.left, excinfo.value.right) == (2, 1)

    def test_from_pairs_accepts_json_document(self):
        batch = SegmentBatch.from_pairs('[{"pointer": "p1", "data": "cipher"}]')
        assert batch.items == (SegmentPair(pointer="p1", data=b"cipher"),)

    def test_from_pairs_accepts_models_and_dicts(self):
        batch = SegmentBatch.from_pairs([SegmentPair(pointer="p1", data=b"x"), {"pointer": "p2", "data": b"y"}])
        assert batch.pointers == ["p1", "p2"]

    def test_from_pairs_none_is_empty(self):
        assert len(SegmentBatch.from_pairs(None)) == 0

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            '{"pointer": "p1", "data": "x"}',
            '[{"pointer": "p1"}]',
            '[{"pointer": "bad pointer", "data": "x"}]',
            '[{"pointer": "p1", "data": ""}]',
            42,
        ],
    )
    def test_from_pairs_rejects_malformed_payloads(self, payload):
        with pytest.raises(InvalidRequestError):
            SegmentBatch.from_pairs(payload)


class TestIndexBatch:
    def test_from_arrays_length_mismatch(self):
        with pytest.raises(LengthMismatchError):
            IndexBatch.from_arrays(["t1"], [["p1"], ["p2"]])

    def test_hash_is_accepted_as_token_alias(self):
        batch = IndexBatch.from_pairs('[{"hash": "h1", "pointers": ["p1", "p2"]}]')
        assert batch.items == (IndexPair(token="h1", pointers=("p1", "p2")),)

    def test_invalid_pointer_inside_pair_is_rejected(self):
        with pytest.raises(InvalidRequestError):
            IndexBatch.from_pairs([{"token": "t1", "pointers": ["ok", "ix:bad"]}])


def test_store_request_defaults_to_empty_batches():
    request = StoreRequest()
    assert len(request.segments) == 0
    assert len(request.indices) == 0
