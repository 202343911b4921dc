"""sessionstore: in-process web session store with cookie binding and snapshots."""

from sessionstore.cookies import SessionCookie as SessionCookie
from sessionstore.cookies import build_cookie as build_cookie
from sessionstore.cookies import build_removal_cookie as build_removal_cookie
from sessionstore.cookies import read_cookie as read_cookie
from sessionstore.errors import IdGenerationError as IdGenerationError
from sessionstore.errors import PersistenceError as PersistenceError
from sessionstore.errors import SessionNotFoundError as SessionNotFoundError
from sessionstore.errors import SessionStoreError as SessionStoreError
from sessionstore.session import Message as Message
from sessionstore.session import Session as Session
from sessionstore.session import SessionManager as SessionManager

__all__ = [
    "IdGenerationError",
    "Message",
    "PersistenceError",
    "Session",
    "SessionCookie",
    "SessionManager",
    "SessionNotFoundError",
    "SessionStoreError",
    "build_cookie",
    "build_removal_cookie",
    "read_cookie",
]
