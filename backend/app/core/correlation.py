"""Request/correlation ID context for logs, envelopes and ledger diagnostics."""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4

import structlog


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def new_request_id() -> str:
    return f"req-{uuid4().hex[:20]}"


def new_correlation_id() -> str:
    return f"corr-{uuid4().hex[:20]}"


def get_request_id() -> str:
    return request_id_ctx.get("")


def get_correlation_id() -> str:
    return correlation_id_ctx.get("")


def bind_request_context(request_id: str | None, correlation_id: str | None) -> tuple[str, str]:
    """Set both ids (generating missing ones) and bind them to structlog."""
    rid = request_id or new_request_id()
    cid = correlation_id or new_correlation_id()
    request_id_ctx.set(rid)
    correlation_id_ctx.set(cid)
    structlog.contextvars.bind_contextvars(request_id=rid, correlation_id=cid)
    return rid, cid


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
    request_id_ctx.set("")
    correlation_id_ctx.set("")
