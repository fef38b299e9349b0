"""
Main SQLite storage entry point for PocketChat.

This module provides the ChatStorage facade, which owns the one store
handle of the process and wires the schema manager and both
repositories to it.

Features:
- Opens the database file once and runs pending migrations
- Exposes the account and conversation repositories
- Schema diagnostics for the command-line shell
"""

import logging
from typing import Any, Optional

from ..config import StorageSettings, get_settings
from .accounts import AccountStore
from .connection import Database
from .conversations import ConversationStore
from .migrations import ensure_schema, schema_status

logger = logging.getLogger(__name__)


class ChatStorage:
    """
    SQLite-based account and message storage.

    Example:
        storage = open_storage()
        storage.accounts.register("alice", "pw1")
        storage.conversations.send("alice", "bob", "hi")
    """

    def __init__(self, db: Database, require_known_accounts: bool = False):
        """
        Wire the repositories to an open handle and migrate it.

        Args:
            db: Open store handle.
            require_known_accounts: Passed to the conversation repository.
        """
        self._db = db
        self.schema_version = ensure_schema(db)
        self.accounts = AccountStore(db)
        self.conversations = ConversationStore(
            db, require_known_accounts=require_known_accounts
        )
        logger.info(f"Chat storage ready: {db.db_path}")

    @property
    def db(self) -> Database:
        """The underlying store handle."""
        return self._db

    def status(self) -> dict[str, Any]:
        """Schema version, table columns, row counts and integrity."""
        info = schema_status(self._db)
        info["integrity_ok"] = self._db.integrity_check()
        info["accounts"] = self.accounts.count()
        row = self._db.fetchone("SELECT COUNT(*) FROM messages")
        info["messages"] = row[0] if row else 0
        return info

    def close(self) -> None:
        """Close the store handle."""
        self._db.close()

    def __enter__(self) -> "ChatStorage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_storage(
    db_path: Optional[str] = None,
    settings: Optional[StorageSettings] = None,
) -> ChatStorage:
    """
    Open the database and return a ready storage object.

    Args:
        db_path: Database file; overrides the configured path.
        settings: Storage settings; defaults to the application settings.

    Returns:
        ChatStorage with an up-to-date schema.
    """
    if settings is None:
        settings = get_settings().storage
    path = db_path or settings.resolved_path

    db = Database(
        path,
        busy_timeout=settings.busy_timeout,
        journal_mode=settings.journal_mode,
    )
    try:
        return ChatStorage(db, require_known_accounts=settings.require_known_accounts)
    except Exception:
        db.close()
        raise
