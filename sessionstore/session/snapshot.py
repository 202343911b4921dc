"""Snapshot file format: versioned JSON, validated on load.

Layout (version 1)::

    {
      "version": 1,
      "cookie_name": "sid",
      "sessions": [
        {"id": "...", "expiry": "2025-06-15T12:00:00+00:00",
         "vars": {"k": "v"}, "message": {"kind": "info", "text": "saved"}}
      ]
    }
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sessionstore.errors import PersistenceError
from sessionstore.session.models import Message, Session, as_utc

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class _MessageRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: str
    text: str


class _SessionRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    expiry: datetime
    vars: dict[str, str] = Field(default_factory=dict)
    message: _MessageRecord | None = None


class _Snapshot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: int
    cookie_name: str = Field(min_length=1)
    sessions: list[_SessionRecord] = Field(default_factory=list)


def encode_snapshot(cookie_name: str, sessions: list[Session]) -> str:
    """Serialize a manager's state to the snapshot JSON text."""
    records = []
    for session in sessions:
        message = session.peek_message()
        records.append(
            {
                "id": session.id,
                "expiry": session.expiry.isoformat(),
                "vars": session.vars_copy(),
                "message": message.to_dict() if message is not None else None,
            }
        )
    data = {"version": SNAPSHOT_VERSION, "cookie_name": cookie_name, "sessions": records}
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def decode_snapshot(content: str) -> tuple[str, list[Session]]:
    """Parse snapshot JSON text into ``(cookie_name, sessions)``.

    Raises ``PersistenceError`` for invalid JSON, an unknown version, or any
    record that does not match the layout.
    """
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as exc:
        msg = f"Snapshot is not valid JSON: {exc}"
        raise PersistenceError(msg) from exc
    except RecursionError as exc:
        msg = "Snapshot is not valid JSON: nested too deeply"
        raise PersistenceError(msg) from exc

    if not isinstance(raw, dict):
        msg = "Snapshot must be a JSON object"
        raise PersistenceError(msg)
    version = raw.get("version")
    if version != SNAPSHOT_VERSION:
        msg = f"Unsupported snapshot version {version!r} (expected {SNAPSHOT_VERSION})"
        raise PersistenceError(msg)

    try:
        snapshot = _Snapshot.model_validate(raw)
    except ValidationError as exc:
        msg = f"Malformed snapshot: {exc}"
        raise PersistenceError(msg) from exc

    seen: set[str] = set()
    sessions: list[Session] = []
    for record in snapshot.sessions:
        if record.id in seen:
            msg = f"Duplicate session ID in snapshot: {record.id[:8]}..."
            raise PersistenceError(msg)
        seen.add(record.id)
        message = (
            Message(kind=record.message.kind, text=record.message.text)
            if record.message is not None
            else None
        )
        try:
            expiry = as_utc(record.expiry)
        except (OverflowError, ValueError) as exc:
            msg = f"Malformed snapshot: expiry of {record.id[:8]}... is out of range: {exc}"
            raise PersistenceError(msg) from exc
        sessions.append(Session(record.id, expiry, record.vars, message))
    return snapshot.cookie_name, sessions


def write_snapshot(path: str | os.PathLike[str], content: str) -> None:
    """Atomically replace *path* with *content* (temp write + rename), mode 0600."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    except OSError as exc:
        msg = f"Cannot write snapshot {path}: {exc}"
        raise PersistenceError(msg) from exc

    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.chmod(0o600)
        tmp.replace(path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        msg = f"Cannot write snapshot {path}: {exc}"
        raise PersistenceError(msg) from exc
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def read_snapshot(path: str | os.PathLike[str]) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Snapshot file not found: {path}"
        raise PersistenceError(msg) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read snapshot {path}: {exc}"
        raise PersistenceError(msg) from exc
