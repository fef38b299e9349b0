import logging
import sqlite3

import pytest

from pocketchat.exceptions import SchemaCorruptionError, StoreUnavailableError
from pocketchat.storage import Database, ensure_schema, get_schema_version, open_storage
from pocketchat.storage.migrations import MIGRATIONS, get_columns
from pocketchat.storage.schema import CONVERSATION_INDEX, SCHEMA_VERSION


def _legacy_db(path, with_photo=False, with_image=False):
    """Database as written by releases before schema versioning."""
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "username TEXT NOT NULL UNIQUE, password TEXT NOT NULL)"
    )
    conn.execute(
        "CREATE TABLE messages (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "sender TEXT NOT NULL, receiver TEXT NOT NULL, message TEXT NOT NULL, "
        "timestamp TEXT NOT NULL)"
    )
    if with_photo:
        conn.execute("ALTER TABLE users ADD COLUMN photo TEXT")
    if with_image:
        conn.execute("ALTER TABLE messages ADD COLUMN image TEXT")
    conn.execute("INSERT INTO users (username, password) VALUES ('alice', 'pw1')")
    conn.execute(
        "INSERT INTO messages (sender, receiver, message, timestamp) "
        "VALUES ('alice', 'bob', 'old hello', '2024-01-01T00:00:00Z')"
    )
    conn.commit()
    conn.close()


def test_ensure_schema_creates_tables_and_optional_columns(db):
    version = ensure_schema(db)

    assert version == SCHEMA_VERSION
    assert get_columns(db.connection, "users") == ["id", "username", "password", "photo"]
    assert get_columns(db.connection, "messages") == [
        "id", "sender", "receiver", "message", "timestamp", "image",
    ]
    index = db.fetchone(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name = ?",
        (CONVERSATION_INDEX,),
    )
    assert index is not None


def test_ensure_schema_twice_keeps_columns_and_rows(db):
    ensure_schema(db)
    with db.transaction() as conn:
        conn.execute("INSERT INTO users (username, password) VALUES ('alice', 'pw1')")
        conn.execute(
            "INSERT INTO messages (sender, receiver, message, timestamp) "
            "VALUES ('alice', 'bob', 'hi', '2025-01-01T00:00:00Z')"
        )

    assert ensure_schema(db) == SCHEMA_VERSION

    users_columns = get_columns(db.connection, "users")
    assert users_columns.count("photo") == 1
    assert get_columns(db.connection, "messages").count("image") == 1
    assert db.fetchone("SELECT COUNT(*) FROM users")[0] == 1
    assert db.fetchone("SELECT COUNT(*) FROM messages")[0] == 1

    versions = [r[0] for r in db.fetchall("SELECT version FROM schema_version ORDER BY version")]
    assert versions == [m.version for m in MIGRATIONS]


def test_migrations_are_numbered_in_order():
    assert [m.version for m in MIGRATIONS] == list(range(1, SCHEMA_VERSION + 1))


def test_legacy_database_is_adopted_without_losing_rows(tmp_path):
    path = str(tmp_path / "legacy.db")
    _legacy_db(path)

    with open_storage(path) as storage:
        assert get_schema_version(storage.db) == SCHEMA_VERSION
        alice = storage.accounts.get("alice")
        assert alice is not None
        assert alice.photo is None

        thread = storage.conversations.conversation("bob", "alice")
        assert [m.message for m in thread] == ["old hello"]
        assert thread[0].image is None


def test_legacy_database_with_optional_columns_already_present(tmp_path):
    path = str(tmp_path / "legacy.db")
    _legacy_db(path, with_photo=True, with_image=True)

    with Database(path) as db:
        ensure_schema(db)
        assert get_columns(db.connection, "users").count("photo") == 1
        assert get_columns(db.connection, "messages").count("image") == 1


def test_missing_column_is_healed_when_marker_is_latest(tmp_path, caplog):
    path = str(tmp_path / "broken.db")
    _legacy_db(path, with_image=True)
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE schema_version (version INTEGER PRIMARY KEY, applied_at TEXT, description TEXT)")
    conn.executemany(
        "INSERT INTO schema_version (version, applied_at) VALUES (?, '2026-01-01T00:00:00Z')",
        [(m.version,) for m in MIGRATIONS],
    )
    conn.commit()
    conn.close()

    with Database(path) as db:
        with caplog.at_level(logging.WARNING):
            ensure_schema(db)

        assert "photo" in get_columns(db.connection, "users")
        assert db.fetchone("SELECT username FROM users")["username"] == "alice"
    assert "re-applying" in caplog.text


def test_table_without_base_columns_is_reported_not_repaired(tmp_path):
    path = str(tmp_path / "odd.db")
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, username TEXT)")
    conn.commit()
    conn.close()

    with Database(path) as db:
        with pytest.raises(SchemaCorruptionError) as exc:
            ensure_schema(db)
        assert exc.value.table == "users"
        assert "password" in exc.value.reason
        # Nothing was recorded for the failed run
        assert get_schema_version(db) == 0


def test_file_that_is_not_a_database_raises_schema_corruption(tmp_path):
    path = tmp_path / "garbage.db"
    path.write_bytes(b"this is definitely not a sqlite file\n" * 64)

    with pytest.raises(SchemaCorruptionError):
        open_storage(str(path))


def test_unwritable_location_raises_store_unavailable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")

    with pytest.raises(StoreUnavailableError) as exc:
        Database(str(blocker / "users.db"))
    assert "blocker" in exc.value.db_path
