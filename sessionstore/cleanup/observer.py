"""Cleanup observer: periodic removal of expired sessions."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from sessionstore.errors import PersistenceError

if TYPE_CHECKING:
    from sessionstore.config import CleanupConfig, StoreConfig
    from sessionstore.session.manager import SessionManager

logger = logging.getLogger(__name__)


class CleanupObserver:
    """Runs ``SessionManager.cleanup()`` every ``cleanup.interval_seconds``.

    ``start()`` / ``stop()`` manage an asyncio background task. The cleanup
    pass itself runs in a worker thread so the event loop never waits on the
    collection lock. With ``persistence.save_on_cleanup`` the store is
    snapshotted after each pass that removed something.
    """

    def __init__(self, config: StoreConfig, manager: SessionManager) -> None:
        self._config = config
        self._manager = manager
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def _cfg(self) -> CleanupConfig:
        return self._config.cleanup

    async def start(self) -> None:
        """Start the cleanup background loop."""
        if not self._cfg.enabled:
            logger.info("Session cleanup disabled in config")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        self._task.add_done_callback(_log_task_crash)
        logger.info("Session cleanup started (every %ds)", self._cfg.interval_seconds)

    async def stop(self) -> None:
        """Stop the cleanup background loop."""
        self._running = False
        if self._task:
            task = self._task
            self._task = None
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Session cleanup stopped")

    async def _loop(self) -> None:
        """Sleep -> cleanup -> repeat."""
        try:
            while self._running:
                await asyncio.sleep(self._cfg.interval_seconds)
                if not self._running:
                    continue
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Cleanup tick failed (continuing)")
        except asyncio.CancelledError:
            logger.debug("Cleanup loop cancelled")

    async def run_once(self) -> int:
        """Run one cleanup pass now. Returns the number of sessions removed."""
        removed = await asyncio.to_thread(self._manager.cleanup)
        snapshot_file = self._config.snapshot_file
        if removed and snapshot_file is not None and self._config.persistence.save_on_cleanup:
            try:
                await self._manager.snapshot_to_async(snapshot_file)
            except PersistenceError:
                logger.exception("Snapshot after cleanup failed")
        return removed


def _log_task_crash(task: asyncio.Task[None]) -> None:
    """Log if the cleanup background task crashes unexpectedly."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Cleanup loop crashed: %s", exc, exc_info=exc)
