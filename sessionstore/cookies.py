"""Cookie adapter: moves a session ID in and out of HTTP cookies.

Pure functions only. Nothing here looks at the session collection.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from http.cookies import SimpleCookie
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aiohttp import web

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class SessionCookie:
    """An outgoing session cookie. Always ``Path=/`` and ``HttpOnly``."""

    name: str
    value: str
    expires: str
    max_age: int | None = None
    secure: bool = False
    path: str = "/"
    httponly: bool = True

    @property
    def is_removal(self) -> bool:
        return self.max_age is not None and self.max_age <= 0

    def apply(self, response: web.StreamResponse) -> None:
        """Attach this cookie to an aiohttp response."""
        response.set_cookie(
            self.name,
            self.value,
            expires=self.expires,
            max_age=self.max_age,
            path=self.path,
            secure=self.secure,
            httponly=self.httponly,
            samesite="Lax",
        )

    def to_header(self) -> str:
        """Render the ``Set-Cookie`` header value for this cookie."""
        jar: SimpleCookie = SimpleCookie()
        jar[self.name] = self.value
        morsel = jar[self.name]
        morsel["expires"] = self.expires
        morsel["path"] = self.path
        if self.max_age is not None:
            morsel["max-age"] = str(self.max_age)
        if self.secure:
            morsel["secure"] = True
        morsel["httponly"] = self.httponly
        morsel["samesite"] = "Lax"
        return morsel.OutputString()


def http_date(moment: datetime) -> str:
    """Format *moment* as an RFC 7231 date (``Sun, 15 Jun 2025 12:00:00 GMT``)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC), usegmt=True)


def build_cookie(
    cookie_name: str,
    session_id: str,
    expiry: datetime,
    *,
    max_age_days: int | None = None,
    secure: bool = False,
) -> SessionCookie:
    """Build the cookie carrying *session_id*.

    Without *max_age_days* the cookie expires together with the session.
    With it, the cookie gets a rolling window of that many days from now.
    """
    if max_age_days is None:
        return SessionCookie(
            name=cookie_name,
            value=session_id,
            expires=http_date(expiry),
            secure=secure,
        )
    window = timedelta(days=max_age_days)
    return SessionCookie(
        name=cookie_name,
        value=session_id,
        expires=http_date(datetime.now(UTC) + window),
        max_age=int(window.total_seconds()),
        secure=secure,
    )


def build_removal_cookie(cookie_name: str, *, secure: bool = False) -> SessionCookie:
    """Build an already-expired cookie that makes the client drop *cookie_name*."""
    return SessionCookie(
        name=cookie_name,
        value="",
        expires=http_date(_EPOCH),
        max_age=0,
        secure=secure,
    )


def read_cookie(cookies: Mapping[str, str], cookie_name: str) -> str | None:
    """Return the session ID from incoming *cookies*, or None if absent or empty."""
    value = cookies.get(cookie_name)
    if not value:
        return None
    return value.strip() or None


def read_query_param(query: Mapping[str, str], name: str) -> str | None:
    """Return the session ID passed as query parameter *name*, or None."""
    value = query.get(name)
    if not value:
        return None
    return value.strip() or None
