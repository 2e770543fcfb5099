"""Typed request structures validated once at the contract boundary.

Parallel-array arguments are zipped into pair models here, so a length
mismatch is reported before any store is touched.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from sse_ledger.domain.errors import InvalidRequestError, LengthMismatchError
from sse_ledger.domain.keys import validate_identifier


class SegmentPair(BaseModel):
    """One ``{pointer, data}`` item of a segment batch."""

    model_config = ConfigDict(frozen=True)

    pointer: str
    data: bytes = Field(min_length=1)

    @field_validator("pointer")
    @classmethod
    def _check_pointer(cls, value: str) -> str:
        return validate_identifier(value, kind="segment pointer")


class IndexPair(BaseModel):
    """One ``{token, pointers}`` item of an index batch.

    ``hash`` is accepted as an alias of ``token`` for payloads produced by
    clients that key the index by keyword hash.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: str = Field(alias="hash")
    pointers: tuple[str, ...] = ()

    @field_validator("token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        return validate_identifier(value, kind="index token")

    @field_validator("pointers")
    @classmethod
    def _check_pointers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for pointer in value:
            validate_identifier(pointer, kind="segment pointer")
        return value


_SEGMENT_PAIRS = TypeAdapter(list[SegmentPair])
_INDEX_PAIRS = TypeAdapter(list[IndexPair])


def _parse_pairs(adapter: TypeAdapter, payload: Any, what: str) -> list:
    if payload is None:
        return []
    try:
        if isinstance(payload, (str, bytes)):
            return adapter.validate_json(payload)
        return adapter.validate_python(list(payload))
    except ValidationError as exc:
        raise InvalidRequestError(f"Invalid {what} payload: {exc.error_count()} validation error(s)") from exc
    except TypeError as exc:
        raise InvalidRequestError(f"Invalid {what} payload: {exc}") from exc


class SegmentBatch(BaseModel):
    """Ordered batch of segments to create."""

    model_config = ConfigDict(frozen=True)

    items: tuple[SegmentPair, ...] = ()

    @classmethod
    def from_arrays(cls, pointers: Sequence[str], ciphertexts: Sequence[bytes | str]) -> SegmentBatch:
        if len(pointers) != len(ciphertexts):
            raise LengthMismatchError(len(pointers), len(ciphertexts), what="segment pointers")
        return cls.from_pairs([{"pointer": p, "data": c} for p, c in zip(pointers, ciphertexts, strict=True)])

    @classmethod
    def from_pairs(cls, payload: Any) -> SegmentBatch:
        """Build from pair models, dicts, or a JSON document string."""
        return cls(items=tuple(_parse_pairs(_SEGMENT_PAIRS, payload, "segment")))

    @property
    def pointers(self) -> list[str]:
        return [item.pointer for item in self.items]

    def __len__(self) -> int:
        return len(self.items)


class IndexBatch(BaseModel):
    """Ordered batch of index merges."""

    model_config = ConfigDict(frozen=True)

    items: tuple[IndexPair, ...] = ()

    @classmethod
    def from_arrays(cls, tokens: Sequence[str], pointer_lists: Sequence[Sequence[str]]) -> IndexBatch:
        if len(tokens) != len(pointer_lists):
            raise LengthMismatchError(len(tokens), len(pointer_lists), what="index tokens")
        return cls.from_pairs(
            [{"token": t, "pointers": list(p)} for t, p in zip(tokens, pointer_lists, strict=True)]
        )

    @classmethod
    def from_pairs(cls, payload: Any) -> IndexBatch:
        """Build from pair models, dicts, or a JSON document string."""
        return cls(items=tuple(_parse_pairs(_INDEX_PAIRS, payload, "index")))

    def __len__(self) -> int:
        return len(self.items)


class StoreRequest(BaseModel):
    """Combined segment and index batch handled by one ``store`` invocation."""

    model_config = ConfigDict(frozen=True)

    segments: SegmentBatch = SegmentBatch()
    indices: IndexBatch = IndexBatch()
