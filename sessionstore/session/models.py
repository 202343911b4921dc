"""Session records: ID, expiry, string variable bag, pending flash message."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True)
class Message:
    """A one-shot flash notice."""

    kind: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "text": self.text}


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Session:
    """One logical user session.

    ``id`` and ``expiry`` are fixed at creation. The variable bag and the
    pending message are guarded by a lock owned by this session alone, so
    callers on unrelated sessions never contend.
    """

    __slots__ = ("_expiry", "_id", "_lock", "_message", "_vars")

    def __init__(
        self,
        session_id: str,
        expiry: datetime,
        variables: dict[str, str] | None = None,
        message: Message | None = None,
    ) -> None:
        self._id = session_id
        self._expiry = as_utc(expiry)
        self._vars: dict[str, str] = dict(variables or {})
        self._message = message
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Session(id={self._id[:8]!r}..., expiry={self._expiry.isoformat()!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def expiry(self) -> datetime:
        return self._expiry

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once the expiry is no longer in the future."""
        current = as_utc(now) if now is not None else datetime.now(UTC)
        return self._expiry <= current

    # -- Variables --

    def get_var(self, key: str) -> tuple[str, bool]:
        """Return ``(value, True)`` for a set key, ``("", False)`` otherwise."""
        with self._lock:
            if key in self._vars:
                return self._vars[key], True
        return "", False

    def set_var(self, key: str, value: str) -> None:
        if not isinstance(key, str) or not isinstance(value, str):
            msg = (
                "Session variables map str -> str, "
                f"got {type(key).__name__} -> {type(value).__name__}"
            )
            raise TypeError(msg)
        with self._lock:
            self._vars[key] = value

    def delete_var(self, key: str) -> bool:
        """Remove *key*. Returns False if it was not set."""
        with self._lock:
            return self._vars.pop(key, None) is not None

    def vars_copy(self) -> dict[str, str]:
        with self._lock:
            return dict(self._vars)

    # -- Flash message --

    def set_message(self, kind: str, text: str) -> None:
        """Store the pending message, replacing any unread one."""
        with self._lock:
            self._message = Message(kind=kind, text=text)

    def get_message(self) -> Message | None:
        """Return the pending message and clear it (read-once)."""
        with self._lock:
            message, self._message = self._message, None
        return message

    def peek_message(self) -> Message | None:
        with self._lock:
            return self._message
