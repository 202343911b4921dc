"""Tests for Session records: expiry, variable bag, per-session flash message."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta, timezone

import pytest
import time_machine

from sessionstore.session.models import Message, Session, as_utc


def _session(**kwargs: object) -> Session:
    expiry = kwargs.pop("expiry", datetime.now(UTC) + timedelta(hours=1))
    return Session("abc123", expiry, **kwargs)  # type: ignore[arg-type]


def test_as_utc_treats_naive_as_utc() -> None:
    naive = datetime(2025, 6, 15, 12, 0)  # noqa: DTZ001
    assert as_utc(naive) == datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def test_as_utc_converts_other_zones() -> None:
    plus_two = datetime(2025, 6, 15, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    converted = as_utc(plus_two)
    assert converted.tzinfo is UTC
    assert converted.hour == 12


def test_id_and_expiry_are_read_only() -> None:
    session = _session()
    with pytest.raises(AttributeError):
        session.id = "other"  # type: ignore[misc]
    with pytest.raises(AttributeError):
        session.expiry = datetime.now(UTC)  # type: ignore[misc]


def test_repr_truncates_id() -> None:
    session = Session("0123456789abcdef", datetime(2025, 6, 15, tzinfo=UTC))
    assert "01234567" in repr(session)
    assert "89abcdef" not in repr(session)


@time_machine.travel("2025-06-15 12:00:00+00:00", tick=False)
def test_is_expired_boundary() -> None:
    now = datetime.now(UTC)
    assert not _session(expiry=now + timedelta(seconds=1)).is_expired()
    assert _session(expiry=now).is_expired()
    assert _session(expiry=now - timedelta(seconds=1)).is_expired()


def test_is_expired_with_explicit_now() -> None:
    session = _session(expiry=datetime(2025, 6, 15, 12, 0, tzinfo=UTC))
    assert not session.is_expired(datetime(2025, 6, 15, 11, 59, tzinfo=UTC))
    assert session.is_expired(datetime(2025, 6, 15, 12, 1, tzinfo=UTC))


# -- Variables --


def test_get_unset_var() -> None:
    assert _session().get_var("missing") == ("", False)


def test_set_then_get_var() -> None:
    session = _session()
    session.set_var("user", "alice")
    assert session.get_var("user") == ("alice", True)


def test_empty_string_value_is_still_set() -> None:
    session = _session()
    session.set_var("note", "")
    assert session.get_var("note") == ("", True)
    assert session.delete_var("note") is True


def test_last_write_wins() -> None:
    session = _session()
    session.set_var("k", "1")
    session.set_var("k", "2")
    assert session.get_var("k") == ("2", True)


def test_delete_var() -> None:
    session = _session(variables={"k": "v"})
    assert session.delete_var("k") is True
    assert session.delete_var("k") is False
    assert session.get_var("k") == ("", False)


def test_vars_copy_is_detached() -> None:
    session = _session(variables={"a": "1"})
    copy = session.vars_copy()
    copy["b"] = "2"
    assert session.get_var("b") == ("", False)


def test_initial_vars_are_copied() -> None:
    source = {"a": "1"}
    session = _session(variables=source)
    source["a"] = "changed"
    assert session.get_var("a") == ("1", True)


@pytest.mark.parametrize(("key", "value"), [(1, "v"), ("k", 2), ("k", None)])
def test_non_string_vars_rejected(key: object, value: object) -> None:
    with pytest.raises(TypeError, match="str -> str"):
        _session().set_var(key, value)  # type: ignore[arg-type]


def test_concurrent_set_var_keeps_every_key() -> None:
    session = _session()

    def writer(prefix: str) -> None:
        for i in range(500):
            session.set_var(f"{prefix}-{i}", str(i))

    threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(session.vars_copy()) == 8 * 500


# -- Flash message --


def test_no_message_by_default() -> None:
    assert _session().get_message() is None


def test_message_is_read_once() -> None:
    session = _session()
    session.set_message("info", "saved")
    assert session.get_message() == Message("info", "saved")
    assert session.get_message() is None


def test_set_message_overwrites_unread() -> None:
    session = _session()
    session.set_message("info", "first")
    session.set_message("error", "second")
    assert session.get_message() == Message("error", "second")


def test_peek_does_not_clear() -> None:
    session = _session()
    session.set_message("info", "saved")
    assert session.peek_message() == Message("info", "saved")
    assert session.get_message() == Message("info", "saved")


def test_message_to_dict() -> None:
    assert Message("warn", "careful").to_dict() == {"kind": "warn", "text": "careful"}
