"""Session lifecycle: creation, lookup with passive expiry, cleanup, snapshots."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sessionstore.cookies import read_cookie, read_query_param
from sessionstore.errors import SessionNotFoundError
from sessionstore.session.ids import DEFAULT_ID_BYTES, generate_session_id
from sessionstore.session.models import Message, Session
from sessionstore.session.snapshot import (
    decode_snapshot,
    encode_snapshot,
    read_snapshot,
    write_snapshot,
)

if TYPE_CHECKING:
    from sessionstore.config import StoreConfig

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns every session for one cookie namespace.

    All structural changes and scans of the collection happen under
    ``_lock``. Each session carries its own lock for its variable bag.
    ``cleanup()`` is single-flight: a call made while another pass is
    running returns immediately.
    """

    def __init__(
        self,
        cookie_name: str,
        *,
        id_bytes: int = DEFAULT_ID_BYTES,
        cleanup_on_create: bool = False,
    ) -> None:
        if not cookie_name:
            msg = "cookie_name must not be empty"
            raise ValueError(msg)
        if id_bytes < 1:
            msg = f"id_bytes must be at least 1, got {id_bytes}"
            raise ValueError(msg)
        self._cookie_name = cookie_name
        self._id_bytes = id_bytes
        self._cleanup_on_create = cleanup_on_create
        self._sessions: dict[str, Session] = {}
        self._messages: list[Message] = []
        self._lock = threading.Lock()
        self._messages_lock = threading.Lock()
        self._cleanup_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: StoreConfig) -> SessionManager:
        return cls(
            config.cookie_name,
            id_bytes=config.id_bytes,
            cleanup_on_create=config.cleanup.on_create,
        )

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    @property
    def id_bytes(self) -> int:
        return self._id_bytes

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    # -- Sessions --

    def create(self, expiry: datetime) -> Session:
        """Create and register a session with an empty variable bag."""
        with self._lock:
            session_id = generate_session_id(self._sessions, self._id_bytes)
            session = Session(session_id, expiry)
            self._sessions[session_id] = session
            total = len(self._sessions)
        logger.info("Session created id=%s total=%d", session_id[:8], total)

        if self._cleanup_on_create:
            self.cleanup()
        return session

    def get(self, session_id: str) -> Session:
        """Return the live session for *session_id*.

        An expired session is dropped from the collection and reported as
        missing. Raises ``SessionNotFoundError``.
        """
        if not session_id or not isinstance(session_id, str):
            raise SessionNotFoundError(session_id if isinstance(session_id, str) else "")

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if session.is_expired():
                del self._sessions[session_id]
                logger.debug("Session expired on lookup id=%s", session_id[:8])
                raise SessionNotFoundError(session_id)
            return session

    def get_from_cookies(self, cookies: Mapping[str, str]) -> Session:
        """Look up the session named by this manager's cookie in *cookies*."""
        return self.get(read_cookie(cookies, self._cookie_name) or "")

    def get_from_query(self, query: Mapping[str, str]) -> Session:
        """Look up the session named by the ``cookie_name`` query parameter."""
        return self.get(read_query_param(query, self._cookie_name) or "")

    def list_sessions(self, *, include_expired: bool = False) -> list[Session]:
        """Return the sessions held right now (a copy).

        Dead sessions awaiting cleanup are left out unless *include_expired*.
        """
        now = datetime.now(UTC)
        with self._lock:
            held = list(self._sessions.values())
        if include_expired:
            return held
        return [s for s in held if not s.is_expired(now)]

    def remove(self, session_id: str) -> None:
        """Remove a session. Raises ``SessionNotFoundError`` if it is not held."""
        if not session_id or not isinstance(session_id, str):
            raise SessionNotFoundError(session_id if isinstance(session_id, str) else "")

        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info("Session removed id=%s", session_id[:8])

    def remove_all(self) -> None:
        with self._lock:
            count = len(self._sessions)
            self._sessions = {}
        logger.info("All sessions removed (%d)", count)

    def cleanup(self) -> int:
        """Remove every session whose expiry has passed. Returns the count removed."""
        if not self._cleanup_lock.acquire(blocking=False):
            logger.debug("Cleanup already running, skipped")
            return 0
        try:
            now = datetime.now(UTC)
            with self._lock:
                expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
                for sid in expired:
                    del self._sessions[sid]
                remaining = len(self._sessions)
        finally:
            self._cleanup_lock.release()

        if expired:
            logger.info("Cleanup removed %d expired session(s), %d left", len(expired), remaining)
        else:
            logger.debug("Cleanup: nothing expired")
        return len(expired)

    # -- Manager-scoped flash queue --

    def add_message(self, kind: str, text: str) -> None:
        with self._messages_lock:
            self._messages.append(Message(kind=kind, text=text))

    def drain_messages(self) -> list[Message]:
        """Return all queued messages in FIFO order and empty the queue."""
        with self._messages_lock:
            drained, self._messages = self._messages, []
        return drained

    # -- Persistence --

    def snapshot_to(self, path: str | os.PathLike[str]) -> None:
        """Write the cookie name and all held sessions to *path*.

        Raises ``PersistenceError`` on I/O failure.
        """
        with self._lock:
            sessions = list(self._sessions.values())
        path = Path(path)
        write_snapshot(path, encode_snapshot(self._cookie_name, sessions))
        logger.info("Snapshot written: %d session(s) to %s", len(sessions), path)

    @classmethod
    def load_from(cls, path: str | os.PathLike[str], **kwargs: Any) -> SessionManager:
        """Build a manager from a snapshot written by ``snapshot_to``.

        Extra keyword arguments are passed to the constructor. Raises
        ``PersistenceError`` if the file is missing, unreadable, or malformed.
        """
        path = Path(path)
        cookie_name, sessions = decode_snapshot(read_snapshot(path))
        manager = cls(cookie_name, **kwargs)
        manager._sessions = {s.id: s for s in sessions}
        logger.info("Snapshot loaded: %d session(s) from %s", len(sessions), path)
        return manager

    async def snapshot_to_async(self, path: str | os.PathLike[str]) -> None:
        await asyncio.to_thread(self.snapshot_to, path)

    @classmethod
    async def load_from_async(
        cls, path: str | os.PathLike[str], **kwargs: Any
    ) -> SessionManager:
        return await asyncio.to_thread(cls.load_from, path, **kwargs)
