"""Session ID generation: hex-encoded bytes from the OS secure random source."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Container

from sessionstore.errors import IdGenerationError

logger = logging.getLogger(__name__)

DEFAULT_ID_BYTES = 30


def generate_session_id(existing: Container[str], length: int = DEFAULT_ID_BYTES) -> str:
    """Return a new lowercase hex ID of ``2 * length`` characters not in *existing*.

    Redraws until the candidate is unused. Raises ``IdGenerationError`` when the
    random source is unavailable; that failure is not retried.
    """
    if length < 1:
        msg = f"Session ID length must be at least 1 byte, got {length}"
        raise ValueError(msg)

    while True:
        try:
            candidate = secrets.token_bytes(length).hex()
        except (NotImplementedError, OSError) as exc:
            msg = f"Secure random source unavailable: {exc}"
            raise IdGenerationError(msg) from exc
        if candidate not in existing:
            return candidate
        logger.warning("Session ID collision, drawing again")
