"""
SQLite database schema definitions for PocketChat.

This module defines the database schema including:
- The base shape of the ``users`` and ``messages`` tables
- The optional columns added after the base shape
- Indexes for conversation lookups
- The ``schema_version`` bookkeeping table

Schema Design Principles:
1. The base shape matches databases written by earlier releases
2. Later columns are nullable additions, never redefinitions
3. ``AUTOINCREMENT`` ids, never reused
"""

# Current schema version (number of entries in migrations.MIGRATIONS)
SCHEMA_VERSION = 4

SCHEMA_VERSION_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    description TEXT
)
"""

USERS_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL
)
"""

# ``message`` is NOT NULL in the base shape; image-only messages store ''.
MESSAGES_SQL = """
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sender TEXT NOT NULL,
    receiver TEXT NOT NULL,
    message TEXT NOT NULL,
    timestamp TEXT NOT NULL
)
"""

BASE_TABLES = {
    "users": USERS_SQL,
    "messages": MESSAGES_SQL,
}

# Columns every table must have for the repositories to work.
BASE_COLUMNS = {
    "users": ("id", "username", "password"),
    "messages": ("id", "sender", "receiver", "message", "timestamp"),
}

# Nullable columns introduced after the base shape: (table, column, type).
OPTIONAL_COLUMNS = (
    ("users", "photo", "TEXT"),
    ("messages", "image", "TEXT"),
)

CONVERSATION_INDEX = "idx_messages_pair"

CONVERSATION_INDEX_SQL = f"""
CREATE INDEX IF NOT EXISTS {CONVERSATION_INDEX}
    ON messages(sender, receiver, id)
"""
