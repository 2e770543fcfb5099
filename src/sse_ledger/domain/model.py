"""Domain model - value objects stored in the ledger.

- ``GenericAsset`` is the raw key/value primitive every stored item reduces to
- ``Segment`` is a client-encrypted blob addressed by a pointer
- ``IndexEntry`` maps a token to the set of pointers it occurs in

Ciphertexts are opaque: nothing in this package interprets or logs them.
"""

from __future__ import annotations

from pydantic import Field
from pydantic.dataclasses import dataclass

from sse_ledger.domain.keys import KeyCategory, encode_key


@dataclass(frozen=True)
class GenericAsset:
    """Raw ledger entry as returned by a range scan."""

    key: str = Field(min_length=1)
    value: bytes = b""
    category: KeyCategory | None = None


@dataclass(frozen=True)
class Segment:
    """Encrypted segment addressed by its pointer."""

    pointer: str = Field(min_length=1)
    ciphertext: bytes = Field(min_length=1)

    @property
    def key(self) -> str:
        return encode_key(KeyCategory.SEGMENT, self.pointer)


@dataclass(frozen=True)
class IndexEntry:
    """Inverted index entry.

    ``pointers`` keeps first-seen order and never contains a duplicate.
    """

    token: str = Field(min_length=1)
    pointers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(set(self.pointers)) != len(self.pointers):
            object.__setattr__(self, "pointers", tuple(dict.fromkeys(self.pointers)))

    @property
    def key(self) -> str:
        return encode_key(KeyCategory.INDEX, self.token)

    def merged(self, pointers: tuple[str, ...] | list[str]) -> IndexEntry:
        """Return the entry holding the set union of current and new pointers."""
        return IndexEntry(token=self.token, pointers=tuple(dict.fromkeys((*self.pointers, *pointers))))
