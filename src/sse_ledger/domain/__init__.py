"""Domain layer - pure ledger logic with no infrastructure dependencies.

This layer contains:
- Value objects: Segment, IndexEntry, GenericAsset
- Key encoding for the segment and index namespaces
- Typed request structures validated at the boundary
- The error taxonomy surfaced to callers
"""

from sse_ledger.domain.errors import (
    AlreadyExistsError,
    CorruptEntryError,
    InvalidIdentifierError,
    InvalidRequestError,
    LedgerError,
    LengthMismatchError,
    MissingSegmentError,
    NotFoundError,
)
from sse_ledger.domain.keys import KEY_SEPARATOR, KeyCategory, decode_key, encode_key, validate_identifier
from sse_ledger.domain.model import GenericAsset, IndexEntry, Segment
from sse_ledger.domain.requests import IndexBatch, IndexPair, SegmentBatch, SegmentPair, StoreRequest


__all__ = [
    "KEY_SEPARATOR",
    "AlreadyExistsError",
    "CorruptEntryError",
    "GenericAsset",
    "IndexBatch",
    "IndexEntry",
    "IndexPair",
    "InvalidIdentifierError",
    "InvalidRequestError",
    "KeyCategory",
    "LedgerError",
    "LengthMismatchError",
    "MissingSegmentError",
    "NotFoundError",
    "Segment",
    "SegmentBatch",
    "SegmentPair",
    "StoreRequest",
    "decode_key",
    "encode_key",
    "validate_identifier",
]
