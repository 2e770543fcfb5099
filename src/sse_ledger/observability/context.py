"""Per-invocation correlation state carried across awaits.

Log records and spans read the same ContextVar, so everything emitted while a
contract call runs shares its trace id, operation name and invocation id.
"""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4


trace_context: ContextVar[dict | None] = ContextVar("sse_ledger_trace_context", default=None)


def _new_ids() -> dict[str, str]:
    raw = uuid4().hex + uuid4().hex
    return {"trace_id": raw[:32], "span_id": raw[32:48]}


def get_trace_context() -> dict:
    """Return the active correlation fields, starting a fresh trace if none is bound."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = _new_ids()
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    """Point the context at a new span without dropping the other fields."""
    trace_context.set({**(trace_context.get() or {}), "span_id": span_id})


def bind_invocation(operation: str) -> str:
    """Tag the current context with a fresh invocation id for ``operation``."""
    invocation_id = uuid4().hex[:12]
    trace_context.set({**get_trace_context(), "operation": operation, "invocation_id": invocation_id})
    return invocation_id
