"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


# Complete test environment that overrides every configurable value
TEST_ENV = {
    "SSE_LEDGER_LEDGER_BACKEND": "memory",
    "SSE_LEDGER_SQLITE_PATH": "sse_ledger_test.db",
    "SSE_LEDGER_CONCURRENT_BATCHES": "true",
    "SSE_LEDGER_MAX_QUERY_TOKENS": "256",
    "SSE_LEDGER_LOG_LEVEL": "info",
    "SSE_LEDGER_LOG_JSON": "true",
    "SSE_LEDGER_SERVICE_NAME": "sse-ledger-test",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Pin test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
