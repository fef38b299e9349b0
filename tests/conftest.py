"""
Pytest fixtures for PocketChat tests.

This module provides common fixtures used across test modules.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pocketchat.config import get_settings  # noqa: E402
from pocketchat.storage import ChatStorage, Database  # noqa: E402


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh database file."""
    return str(tmp_path / "data" / "users.db")


@pytest.fixture
def db(db_path):
    """Open store handle on a fresh file, without schema."""
    handle = Database(db_path)
    yield handle
    handle.close()


@pytest.fixture
def storage(db):
    """Migrated storage on a fresh file."""
    return ChatStorage(db)


@pytest.fixture
def alice_and_bob(storage):
    """Storage with alice/pw1 and bob/pw2 registered."""
    storage.accounts.register("alice", "pw1")
    storage.accounts.register("bob", "pw2")
    return storage


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from the user's configuration and home directory."""
    for name in list(os.environ):
        if name.startswith(("POCKETCHAT_", "LOG_")):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("POCKETCHAT_DB_PATH", str(tmp_path / "default" / "users.db"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
