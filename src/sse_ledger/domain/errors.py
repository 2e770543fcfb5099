"""Domain errors for the encrypted segment ledger.

Every error is terminal for the current invocation: the unit of work rolls
back and the error is surfaced to the caller unchanged.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger core failures."""


class NotFoundError(LedgerError):
    """Raised when a read, update or delete targets an absent key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"The ledger asset {key!r} does not exist")


class AlreadyExistsError(LedgerError):
    """Raised when a create targets a key that already holds a live value."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"The ledger asset {key!r} already exists")


class LengthMismatchError(LedgerError):
    """Raised when paired array arguments differ in length."""

    def __init__(self, left: int, right: int, *, what: str = "keys"):
        self.left = left
        self.right = right
        super().__init__(f"The {what} list ({left} items) doesn't match the values list ({right} items)")


class MissingSegmentError(LedgerError):
    """Raised when an index entry points at a segment that is not stored."""

    def __init__(self, pointer: str, key: str):
        self.pointer = pointer
        self.key = key
        super().__init__(f"An encrypted segment with the key {key!r} is missing")


class InvalidIdentifierError(LedgerError, ValueError):
    """Raised when a pointer or token cannot be encoded into a ledger key."""


class InvalidRequestError(LedgerError, ValueError):
    """Raised when a request payload fails validation at the boundary."""


class CorruptEntryError(LedgerError):
    """Raised when a stored index entry does not decode to a pointer list."""

    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(f"Index entry {key!r} is corrupt: {reason}")
