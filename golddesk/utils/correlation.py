from __future__ import annotations

import uuid
import contextvars

# Task-local correlation id for logging/observability
_cid = contextvars.ContextVar("correlation_id", default="")


def set_correlation_id(value: str | None = None) -> str:
    """Set a correlation id for the current request (generate if not provided)."""
    cid = (value or "").strip()[:64] or uuid.uuid4().hex
    _cid.set(cid)
    return cid


def get_correlation_id() -> str:
    return _cid.get("")


def clear_correlation_id() -> None:
    _cid.set("")
