"""Session records, ID generation, the manager, and snapshot persistence."""

from sessionstore.session.manager import SessionManager as SessionManager
from sessionstore.session.models import Message as Message
from sessionstore.session.models import Session as Session

__all__ = ["Message", "Session", "SessionManager"]
