"""Full namespace scans for export and diagnostics."""

import logging

from sse_ledger.adapters.ledger import AbstractLedger
from sse_ledger.domain.keys import decode_key
from sse_ledger.domain.model import GenericAsset


logger = logging.getLogger(__name__)


class NamespaceDump:
    """Read every key the ledger holds, across both categories and raw keys."""

    def __init__(self, ledger: AbstractLedger):
        self.ledger = ledger

    async def read_all(self) -> list[bytes]:
        """Return every stored value in ledger key order."""
        values = [value async for _, value in self.ledger.range_scan("", "")]
        logger.debug("Namespace dump read %d value(s)", len(values))
        return values

    async def export(self) -> list[GenericAsset]:
        """Return every stored asset with its key and resolved category."""
        assets: list[GenericAsset] = []
        async for key, value in self.ledger.range_scan("", ""):
            decoded = decode_key(key)
            assets.append(GenericAsset(key=key, value=value, category=decoded[0] if decoded else None))
        return assets
