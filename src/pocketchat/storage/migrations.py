"""
Database migration system for PocketChat.

This module handles:
- Schema versioning through the ``schema_version`` table
- Ordered, additive migrations
- Adoption of databases written before versioning existed
- Self-healing of databases whose marker is ahead of their tables

Migration Philosophy:
1. Forward-only and additive: tables, nullable columns and indexes are
   created, never dropped, renamed or rewritten
2. Each migration is idempotent and decides by introspection
   (``PRAGMA table_info``), never by catching a failed read
3. Each migration is atomic together with its version row
4. Existing rows are always preserved
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable

from ..exceptions import SchemaCorruptionError, StoreUnavailableError
from .connection import Database, is_unavailable
from .schema import (
    BASE_COLUMNS,
    BASE_TABLES,
    CONVERSATION_INDEX,
    CONVERSATION_INDEX_SQL,
    OPTIONAL_COLUMNS,
    SCHEMA_VERSION_SQL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    """One schema step: ``apply`` makes it so, ``check`` tells whether it is."""

    version: int
    description: str
    table: str
    apply: Callable[[sqlite3.Connection], None]
    check: Callable[[sqlite3.Connection], bool]


def get_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    """
    List the columns of a table.

    Args:
        conn: Open connection.
        table: Table name.

    Returns:
        Column names in declaration order, empty if the table does not exist.
    """
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return [row[1] for row in rows]


def _require_base_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    columns = get_columns(conn, table)
    if not columns:
        raise SchemaCorruptionError(table, "table does not exist")
    missing = [c for c in BASE_COLUMNS[table] if c not in columns]
    if missing:
        raise SchemaCorruptionError(
            table,
            f"missing base columns {', '.join(missing)}",
            details={"columns": columns},
        )
    return columns


def _create_base_tables(conn: sqlite3.Connection) -> None:
    for table, ddl in BASE_TABLES.items():
        conn.execute(ddl)
        _require_base_columns(conn, table)


def _base_tables_exist(conn: sqlite3.Connection) -> bool:
    for table in BASE_TABLES:
        columns = get_columns(conn, table)
        if not columns:
            return False
        # Present but malformed tables are reported by _create_base_tables
        if any(c not in columns for c in BASE_COLUMNS[table]):
            return False
    return True


def _add_column(table: str, column: str, col_type: str) -> Callable[[sqlite3.Connection], None]:
    def apply(conn: sqlite3.Connection) -> None:
        columns = _require_base_columns(conn, table)
        if column in columns:
            return
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}")
        logger.info(f"Added '{column}' column to {table} table")

    return apply


def _has_column(table: str, column: str) -> Callable[[sqlite3.Connection], bool]:
    def check(conn: sqlite3.Connection) -> bool:
        return column in get_columns(conn, table)

    return check


def _create_conversation_index(conn: sqlite3.Connection) -> None:
    conn.execute(CONVERSATION_INDEX_SQL)


def _conversation_index_exists(conn: sqlite3.Connection) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name = ?",
        (CONVERSATION_INDEX,),
    ).fetchone()
    return row is not None


MIGRATIONS: list[Migration] = [
    Migration(
        1,
        "Create users and messages tables",
        "users",
        _create_base_tables,
        _base_tables_exist,
    ),
    *[
        Migration(
            version,
            f"Add {table}.{column}",
            table,
            _add_column(table, column, col_type),
            _has_column(table, column),
        )
        for version, (table, column, col_type) in enumerate(OPTIONAL_COLUMNS, start=2)
    ],
    Migration(
        4,
        "Index conversation lookups",
        "messages",
        _create_conversation_index,
        _conversation_index_exists,
    ),
]


def get_schema_version(db: Database) -> int:
    """
    Get the current schema version from the database.

    Returns:
        Highest applied version, or 0 if versioning was never initialised.
    """
    with db.lock:
        conn = db.connection
        if not get_columns(conn, "schema_version"):
            return 0
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return int(row[0]) if row and row[0] is not None else 0


def ensure_schema(db: Database) -> int:
    """
    Bring the database to the latest schema version.

    Safe to call on every start: applied migrations are skipped, pending
    ones run in order, and any step whose effect has gone missing is
    re-applied. Only "column missing" is repaired; every other problem
    is raised.

    Args:
        db: Open store handle.

    Returns:
        The schema version after the call.

    Raises:
        SchemaCorruptionError: If a table cannot be probed or lacks base columns.
        StoreUnavailableError: If the file cannot be written.
    """
    table = "schema_version"
    # Held for the whole run so readers never see a half-migrated schema.
    with db.lock:
        try:
            with db.transaction() as conn:
                conn.execute(SCHEMA_VERSION_SQL)
            current = get_schema_version(db)

            for migration in MIGRATIONS:
                if migration.version <= current:
                    continue
                table = migration.table
                logger.info(
                    f"Applying migration {migration.version}: {migration.description}"
                )
                with db.transaction() as conn:
                    migration.apply(conn)
                    conn.execute(
                        "INSERT INTO schema_version (version, description) VALUES (?, ?)",
                        (migration.version, migration.description),
                    )
                current = migration.version

            for migration in MIGRATIONS:
                table = migration.table
                with db.transaction() as conn:
                    if migration.check(conn):
                        continue
                    logger.warning(
                        f"Schema version {current} recorded but "
                        f"'{migration.description}' is missing, re-applying"
                    )
                    migration.apply(conn)

        except sqlite3.OperationalError as e:
            if is_unavailable(e):
                raise StoreUnavailableError(db.db_path, str(e)) from e
            logger.error(f"Schema probe failed on {table}: {e}")
            raise SchemaCorruptionError(table, str(e)) from e
        except sqlite3.DatabaseError as e:
            logger.error(f"Schema probe failed on {table}: {e}")
            raise SchemaCorruptionError(table, str(e)) from e

    logger.debug(f"Database schema is up to date (version {current})")
    return current


def schema_status(db: Database) -> dict:
    """
    Describe the schema for diagnostics.

    Returns:
        Dict with ``version`` and the column list of each application table.
    """
    with db.lock:
        conn = db.connection
        return {
            "version": get_schema_version(db),
            "tables": {table: get_columns(conn, table) for table in BASE_TABLES},
        }
