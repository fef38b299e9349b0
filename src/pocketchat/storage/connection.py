"""
SQLite connection management for PocketChat.

This module provides:
- The single explicit store handle shared by every repository
- Context managers for write transactions
- Connection configuration (journal mode, busy timeout)
- Translation of driver failures into storage exceptions

SQLite Practices Applied:
1. One connection per process, serialised by a re-entrant lock
2. Autocommit mode with explicit ``BEGIN IMMEDIATE`` transactions
3. Busy timeout for access from other processes
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from ..exceptions import SchemaCorruptionError, StoreUnavailableError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

# Driver messages that mean the file itself cannot be used right now.
_UNAVAILABLE_MARKERS = (
    "unable to open",
    "readonly",
    "read-only",
    "disk i/o",
    "database is locked",
    "database or disk is full",
)


def is_unavailable(error: sqlite3.Error) -> bool:
    """Whether a driver error means the store cannot be opened or written."""
    text = str(error).lower()
    return any(marker in text for marker in _UNAVAILABLE_MARKERS)


class Database:
    """
    Explicit SQLite store handle.

    Opened once at process start and passed to the schema manager and to
    both repositories. A single connection is shared between threads and
    every statement runs under one lock, so writes are serialised and a
    transaction is never interleaved with another caller's statements.

    Example:
        db = Database("/tmp/users.db")
        with db.transaction() as conn:
            conn.execute("INSERT INTO ...")
        rows = db.fetchall("SELECT * FROM users")
    """

    def __init__(
        self,
        db_path: str,
        busy_timeout: int = 5000,
        journal_mode: str = "WAL",
    ):
        """
        Open the database file.

        Args:
            db_path: Path to the SQLite file, or ``:memory:``.
            busy_timeout: Milliseconds to wait for another process's lock.
            journal_mode: SQLite journal mode to request.

        Raises:
            StoreUnavailableError: If the file cannot be opened.
            SchemaCorruptionError: If the file is not a SQLite database.
        """
        self._db_path = db_path
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = self._create_connection(
            busy_timeout, journal_mode
        )
        logger.info(f"Database opened: {db_path}")

    def _create_connection(
        self, busy_timeout: int, journal_mode: str
    ) -> sqlite3.Connection:
        if self._db_path != MEMORY_PATH:
            try:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreUnavailableError(self._db_path, str(e)) from e

        try:
            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,  # guarded by self._lock
                isolation_level=None,  # explicit transactions via transaction()
                timeout=busy_timeout / 1000,
            )
        except sqlite3.Error as e:
            raise StoreUnavailableError(self._db_path, str(e)) from e

        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout)}")
            if self._db_path != MEMORY_PATH:
                conn.execute(f"PRAGMA journal_mode = {journal_mode}")
        except sqlite3.OperationalError as e:
            conn.close()
            raise StoreUnavailableError(self._db_path, str(e)) from e
        except sqlite3.DatabaseError as e:
            conn.close()
            raise SchemaCorruptionError("sqlite_master", str(e)) from e

        return conn

    @property
    def db_path(self) -> str:
        """Get the database file path."""
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the underlying connection."""
        if self._conn is None:
            raise StoreUnavailableError(self._db_path, "handle is closed")
        return self._conn

    @property
    def lock(self) -> threading.RLock:
        """Lock serialising access to the connection."""
        return self._lock

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for write transactions.

        Takes the handle lock and SQLite's write lock (``BEGIN IMMEDIATE``)
        up front, commits on success and rolls back on exception. Nested
        use joins the outer transaction.

        Yields:
            SQLite connection within a transaction.

        Example:
            with db.transaction() as conn:
                conn.execute("INSERT INTO ...")
                conn.execute("UPDATE ...")
            # Auto-commits here
        """
        with self._lock:
            conn = self.connection
            in_transaction = conn.in_transaction
            if not in_transaction:
                self._run(conn.execute, "BEGIN IMMEDIATE")
            try:
                yield conn
                if not in_transaction:
                    self._run(conn.commit)
            except Exception:
                if not in_transaction and conn.in_transaction:
                    conn.rollback()
                raise

    def _run(self, func, *args):
        try:
            return func(*args)
        except sqlite3.OperationalError as e:
            if is_unavailable(e):
                raise StoreUnavailableError(self._db_path, str(e)) from e
            raise

    def execute(
        self,
        sql: str,
        params: tuple = (),
    ) -> sqlite3.Cursor:
        """
        Execute a SQL statement.

        Args:
            sql: SQL statement to execute.
            params: Positional parameters for the statement.

        Returns:
            Cursor with results.
        """
        with self._lock:
            return self._run(self.connection.execute, sql, params)

    def fetchone(
        self,
        sql: str,
        params: tuple = (),
    ) -> Optional[sqlite3.Row]:
        """
        Execute and fetch the first row.

        Args:
            sql: SQL query to execute.
            params: Query parameters.

        Returns:
            Single row or None.
        """
        with self._lock:
            return self.execute(sql, params).fetchone()

    def fetchall(
        self,
        sql: str,
        params: tuple = (),
    ) -> list[sqlite3.Row]:
        """
        Execute and fetch all rows.

        Args:
            sql: SQL query to execute.
            params: Query parameters.

        Returns:
            List of rows.
        """
        with self._lock:
            return self.execute(sql, params).fetchall()

    def integrity_check(self) -> bool:
        """
        Run integrity check on the database.

        Returns:
            True if database is healthy.
        """
        result = self.fetchone("PRAGMA integrity_check")
        is_ok = bool(result) and result[0] == "ok"
        if not is_ok:
            logger.error(f"Database integrity check failed: {result}")
        return is_ok

    def close(self) -> None:
        """Close the connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Database connection closed")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
