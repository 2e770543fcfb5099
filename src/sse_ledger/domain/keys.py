"""Ledger key encoding for the segment and index namespaces.

A ledger key is ``<tag><separator><identifier>``. Identifiers may not contain
the separator or whitespace, which keeps the encoding injective: a pointer can
never be encoded into a key that collides with an index token or vice versa.
"""

from __future__ import annotations

from enum import Enum

from sse_ledger.domain.errors import InvalidIdentifierError


KEY_SEPARATOR = ":"


class KeyCategory(str, Enum):
    """Namespace tag for a ledger key."""

    SEGMENT = "ct"
    INDEX = "ix"

    @property
    def prefix(self) -> str:
        return f"{self.value}{KEY_SEPARATOR}"


def is_valid_identifier(identifier: object) -> bool:
    """Check whether ``identifier`` can be encoded without raising."""
    if not isinstance(identifier, str) or not identifier:
        return False
    if KEY_SEPARATOR in identifier:
        return False
    return not any(char.isspace() for char in identifier)


def validate_identifier(identifier: object, *, kind: str = "identifier") -> str:
    """Return ``identifier`` unchanged or raise ``InvalidIdentifierError``.

    Args:
        identifier: Raw pointer or token supplied by a caller
        kind: Human readable label used in the error message

    Returns:
        The validated identifier
    """
    if not isinstance(identifier, str):
        raise InvalidIdentifierError(f"{kind} must be a string, got {type(identifier).__name__}")
    if not identifier:
        raise InvalidIdentifierError(f"{kind} must not be empty")
    if KEY_SEPARATOR in identifier:
        raise InvalidIdentifierError(f"{kind} {identifier!r} must not contain {KEY_SEPARATOR!r}")
    if any(char.isspace() for char in identifier):
        raise InvalidIdentifierError(f"{kind} {identifier!r} must not contain whitespace")
    return identifier


def encode_key(category: KeyCategory, identifier: str) -> str:
    """Encode an identifier into the ledger key for ``category``."""
    validate_identifier(identifier, kind="segment pointer" if category is KeyCategory.SEGMENT else "index token")
    return f"{category.prefix}{identifier}"


def decode_key(key: str) -> tuple[KeyCategory, str] | None:
    """Split a ledger key back into category and identifier.

    Returns None for raw keys that belong to neither namespace.
    """
    tag, separator, identifier = key.partition(KEY_SEPARATOR)
    if not separator or not is_valid_identifier(identifier):
        return None
    try:
        category = KeyCategory(tag)
    except ValueError:
        return None
    return category, identifier
