"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from sessionstore.log_context import clear_log_context
from sessionstore.session.manager import SessionManager


@pytest.fixture(autouse=True)
def _reset_log_context() -> Iterator[None]:
    yield
    clear_log_context()


@pytest.fixture
def manager() -> SessionManager:
    """Empty manager for the ``sid`` cookie."""
    return SessionManager("sid")


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "state" / "sessions.json"

