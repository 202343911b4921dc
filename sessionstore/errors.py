"""Project-level exception hierarchy."""


class SessionStoreError(Exception):
    """Base for all sessionstore exceptions."""


class SessionNotFoundError(SessionStoreError, KeyError):
    """No live session exists for the given ID (absent or expired)."""

    def __init__(self, session_id: str = "") -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        if not self.session_id:
            return "could not find session for empty ID"
        return f"could not find session {self.session_id[:8]}..."


class IdGenerationError(SessionStoreError):
    """Secure random source unavailable while generating a session ID."""


class PersistenceError(SessionStoreError):
    """Snapshot could not be written or read back."""


class ConfigError(SessionStoreError):
    """Configuration file missing fields or failed validation."""
