"""aiohttp integration: resolve the request's session from its cookie.

The middleware looks up the session before the handler runs and writes
any cookie change queued by ``new_session()`` / ``end_session()`` onto the
response afterwards. Handlers stay unaware of cookie mechanics.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from aiohttp import hdrs, web

from sessionstore.cookies import SessionCookie, build_cookie, build_removal_cookie, read_cookie
from sessionstore.errors import SessionNotFoundError
from sessionstore.log_context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from aiohttp.typedefs import Handler, Middleware

    from sessionstore.config import StoreConfig
    from sessionstore.session.manager import SessionManager
    from sessionstore.session.models import Session

logger = logging.getLogger(__name__)

_SESSION = "sessionstore.session"
_MANAGER = "sessionstore.manager"
_CONFIG = "sessionstore.config"
_PENDING_COOKIE = "sessionstore.pending_cookie"


def session_middleware(manager: SessionManager, config: StoreConfig) -> Middleware:
    """Build a middleware that attaches *manager*'s session to each request."""

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        request[_MANAGER] = manager
        request[_CONFIG] = config
        request[_PENDING_COOKIE] = None
        request[_SESSION] = None

        # Requests on one keep-alive connection share a task, so reset first.
        clear_log_context()
        set_log_context(cookie_name=manager.cookie_name)
        if read_cookie(request.cookies, manager.cookie_name) is not None:
            try:
                session = manager.get_from_cookies(request.cookies)
            except SessionNotFoundError:
                logger.debug("Stale session cookie, asking client to drop it")
                request[_PENDING_COOKIE] = build_removal_cookie(
                    manager.cookie_name, secure=config.cookie.secure
                )
            else:
                request[_SESSION] = session
                set_log_context(session_id=session.id)

        try:
            response = await handler(request)
        except web.HTTPException as exc:
            cookie = request[_PENDING_COOKIE]
            if cookie is not None:
                exc.headers.add(hdrs.SET_COOKIE, cookie.to_header())
            raise
        _apply_pending_cookie(request, response)
        return response

    return middleware


def _apply_pending_cookie(request: web.Request, response: web.StreamResponse) -> None:
    cookie: SessionCookie | None = request[_PENDING_COOKIE]
    if cookie is not None and not response.prepared:
        cookie.apply(response)


def get_session(request: web.Request) -> Session | None:
    """Return the live session bound to *request*, or None."""
    return request.get(_SESSION)


def new_session(request: web.Request, ttl: timedelta | None = None) -> Session:
    """Create a session for *request* and queue its cookie.

    Any session the request already carried is removed first, so a client
    never keeps an ID issued before this call.
    """
    manager: SessionManager = request[_MANAGER]
    config: StoreConfig = request[_CONFIG]

    previous: Session | None = request[_SESSION]
    if previous is not None:
        _discard(manager, previous.id)

    lifetime = ttl if ttl is not None else timedelta(minutes=config.default_ttl_minutes)
    session = manager.create(datetime.now(UTC) + lifetime)
    request[_SESSION] = session
    request[_PENDING_COOKIE] = build_cookie(
        manager.cookie_name,
        session.id,
        session.expiry,
        max_age_days=config.cookie.max_age_days,
        secure=config.cookie.secure,
    )
    set_log_context(session_id=session.id)
    return session


def end_session(request: web.Request) -> None:
    """Remove the request's session (if any) and queue a removal cookie."""
    manager: SessionManager = request[_MANAGER]
    config: StoreConfig = request[_CONFIG]

    current: Session | None = request[_SESSION]
    if current is not None:
        _discard(manager, current.id)
    request[_SESSION] = None
    request[_PENDING_COOKIE] = build_removal_cookie(
        manager.cookie_name, secure=config.cookie.secure
    )


def _discard(manager: SessionManager, session_id: str) -> None:
    try:
        manager.remove(session_id)
    except SessionNotFoundError:
        # Already gone through cleanup or a concurrent request.
        logger.debug("Session %s vanished before removal", session_id[:8])
