"""Shared pytest configuration and fixtures for tests."""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from taskly.core import repository  # noqa: E402
from taskly.sync.bus import SignalBus  # noqa: E402


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    """Use temporary database for all tests."""
    db_path = tmp_path / "test_taskly.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    monkeypatch.setattr(repository, "DB_DIR", tmp_path)
    yield db_path


@pytest.fixture
def bus():
    return SignalBus()


@pytest.fixture
def unopenable_db(monkeypatch, tmp_path):
    """Point the repository at a directory that can't be created."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setattr(repository, "DB_DIR", blocker / "data")
    monkeypatch.setattr(repository, "DB_PATH", blocker / "data" / "taskly.db")


@pytest.fixture
def external_write(temp_db):
    """Insert an epic the way another process would: own connection, revision bump."""
    def write(title="From another terminal"):
        conn = sqlite3.connect(temp_db)
        try:
            conn.execute("INSERT INTO backlog_items (title, type) VALUES (?, 'Epic')", (title,))
            conn.execute("UPDATE meta SET value = value + 1 WHERE key = 'revision'")
            conn.commit()
        finally:
            conn.close()
    return write
