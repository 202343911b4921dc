"""Logging context: ContextVar-based log enrichment.

Every log record is enriched with a ``[cookie:sid]`` prefix via a
`ContextFilter` attached to the root logger handlers. Session IDs are
truncated to their first 8 characters.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

# Propagated through threads started with copy_context() and through asyncio tasks.
ctx_cookie_name: ContextVar[str | None] = ContextVar("ctx_cookie_name", default=None)
ctx_session_id: ContextVar[str | None] = ContextVar("ctx_session_id", default=None)


class ContextFilter(logging.Filter):
    """Inject ContextVar values into every LogRecord as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        cookie = ctx_cookie_name.get(None)
        sid = ctx_session_id.get(None)
        parts: list[str] = []
        if cookie:
            parts.append(cookie)
        if sid:
            parts.append(sid[:8])
        record.ctx = f"[{':'.join(parts)}] " if parts else ""
        return True


def set_log_context(
    *,
    cookie_name: str | None = None,
    session_id: str | None = None,
) -> None:
    """Set logging context for the current task or thread."""
    if cookie_name is not None:
        ctx_cookie_name.set(cookie_name)
    if session_id is not None:
        ctx_session_id.set(session_id)


def clear_log_context() -> None:
    """Reset the context so later records carry no prefix."""
    ctx_cookie_name.set(None)
    ctx_session_id.set(None)
