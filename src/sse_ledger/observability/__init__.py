"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from sse_ledger.observability.context import (
    bind_invocation,
    get_trace_context,
    set_trace_context,
    trace_context,
)
from sse_ledger.observability.logging import JsonFormatter, configure_logging
from sse_ledger.observability.metrics import (
    ERROR_COUNT,
    INVOCATION_COUNT,
    INVOCATION_LATENCY,
    LAST_COMMIT_CHANGES,
    SEARCH_RESULT_COUNT,
    get_metrics,
    init_metrics,
    track_latency,
)
from sse_ledger.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "ERROR_COUNT",
    "INVOCATION_COUNT",
    "INVOCATION_LATENCY",
    "LAST_COMMIT_CHANGES",
    "SEARCH_RESULT_COUNT",
    "JsonFormatter",
    "bind_invocation",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
