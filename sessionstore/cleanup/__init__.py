"""Periodic removal of expired sessions."""

from sessionstore.cleanup.observer import CleanupObserver as CleanupObserver

__all__ = ["CleanupObserver"]
