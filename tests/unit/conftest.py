"""Fixtures shared by unit tests."""

import pytest

from sse_ledger.adapters.ledger import InMemoryLedger
from sse_ledger.config import Settings
from sse_ledger.service_layer.contract import SseContract
from sse_ledger.service_layer.index_store import IndexStore
from sse_ledger.service_layer.search_engine import SearchEngine
from sse_ledger.service_layer.segment_store import SegmentStore


@pytest.fixture
def ledger() -> InMemoryLedger:
    """Empty in-memory ledger."""
    return InMemoryLedger()


@pytest.fixture
def segments(ledger: InMemoryLedger) -> SegmentStore:
    return SegmentStore(ledger)


@pytest.fixture
def index(ledger: InMemoryLedger) -> IndexStore:
    return IndexStore(ledger)


@pytest.fixture
def engine(segments: SegmentStore, index: IndexStore) -> SearchEngine:
    return SearchEngine(segments, index)


@pytest.fixture
def settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


@pytest.fixture
def contract(ledger: InMemoryLedger, settings: Settings) -> SseContract:
    """Contract over the shared in-memory ledger fixture."""
    return SseContract(ledger, settings)
