"""Tests for the cookie adapter."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
import time_machine
from aiohttp import web

from sessionstore.cookies import (
    build_cookie,
    build_removal_cookie,
    http_date,
    read_cookie,
    read_query_param,
)


def test_http_date_format() -> None:
    assert http_date(datetime(2025, 6, 15, 12, 0, tzinfo=UTC)) == "Sun, 15 Jun 2025 12:00:00 GMT"


def test_http_date_converts_to_gmt() -> None:
    local = datetime(2025, 6, 15, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert http_date(local) == "Sun, 15 Jun 2025 12:00:00 GMT"


def test_http_date_naive_is_utc() -> None:
    naive = datetime(2025, 6, 15, 12, 0)  # noqa: DTZ001
    assert http_date(naive) == "Sun, 15 Jun 2025 12:00:00 GMT"


def test_build_cookie_follows_session_expiry() -> None:
    cookie = build_cookie("sid", "abc", datetime(2025, 6, 15, 12, 0, tzinfo=UTC))
    assert cookie.name == "sid"
    assert cookie.value == "abc"
    assert cookie.path == "/"
    assert cookie.httponly is True
    assert cookie.max_age is None
    assert cookie.expires == "Sun, 15 Jun 2025 12:00:00 GMT"
    assert not cookie.is_removal


@time_machine.travel("2025-06-15 12:00:00+00:00", tick=False)
def test_build_cookie_rolling_window() -> None:
    cookie = build_cookie(
        "sid", "abc", datetime(2025, 6, 15, 13, 0, tzinfo=UTC), max_age_days=30
    )
    assert cookie.max_age == 30 * 86400
    assert cookie.expires == "Tue, 15 Jul 2025 12:00:00 GMT"


def test_build_cookie_secure_flag() -> None:
    cookie = build_cookie("sid", "abc", datetime(2025, 6, 15, tzinfo=UTC), secure=True)
    assert cookie.secure is True


def test_removal_cookie() -> None:
    cookie = build_removal_cookie("sid")
    assert cookie.name == "sid"
    assert cookie.value == ""
    assert cookie.max_age == 0
    assert cookie.path == "/"
    assert cookie.httponly is True
    assert cookie.expires == "Thu, 01 Jan 1970 00:00:00 GMT"
    assert cookie.is_removal


def test_apply_sets_http_only_site_wide_cookie() -> None:
    response = web.Response()
    build_cookie("sid", "abc", datetime(2025, 6, 15, 12, 0, tzinfo=UTC)).apply(response)

    morsel = response.cookies["sid"]
    assert morsel.value == "abc"
    assert morsel["path"] == "/"
    assert morsel["httponly"] is True
    assert morsel["expires"] == "Sun, 15 Jun 2025 12:00:00 GMT"


def test_apply_removal_cookie() -> None:
    response = web.Response()
    build_removal_cookie("sid").apply(response)

    morsel = response.cookies["sid"]
    assert morsel.value == ""
    assert str(morsel["max-age"]) == "0"


@pytest.mark.parametrize(
    ("cookies", "expected"),
    [
        ({"sid": "abc"}, "abc"),
        ({"sid": "  abc  "}, "abc"),
        ({"sid": ""}, None),
        ({"sid": "   "}, None),
        ({"other": "abc"}, None),
        ({}, None),
    ],
)
def test_read_cookie(cookies: dict[str, str], expected: str | None) -> None:
    assert read_cookie(cookies, "sid") == expected


def test_read_query_param() -> None:
    assert read_query_param({"sid": "abc", "page": "1"}, "sid") == "abc"
    assert read_query_param({"page": "1"}, "sid") is None
    assert read_query_param({"sid": ""}, "sid") is None


def test_to_header() -> None:
    header = build_cookie("sid", "abc", datetime(2025, 6, 15, 12, 0, tzinfo=UTC)).to_header()
    assert header.startswith("sid=abc; ")
    assert "expires=Sun, 15 Jun 2025 12:00:00 GMT" in header
    assert "HttpOnly" in header
    assert "Path=/" in header
    assert "Max-Age" not in header
    assert "Secure" not in header


def test_to_header_removal_and_secure() -> None:
    header = build_removal_cookie("sid", secure=True).to_header()
    assert "Max-Age=0" in header
    assert "Secure" in header
