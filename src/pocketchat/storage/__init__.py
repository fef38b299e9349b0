"""
SQLite storage for PocketChat.

This package provides the local persistence layer shared by every screen.

Modules:
    connection: The explicit store handle and transactions
    schema: Table definitions and optional columns
    migrations: Versioned, additive schema migrations
    accounts: Account repository
    conversations: Message repository
    storage: Facade wiring the handle, schema and repositories together
"""

from .accounts import AccountStore
from .connection import Database
from .conversations import ConversationStore
from .migrations import MIGRATIONS, ensure_schema, get_schema_version
from .storage import ChatStorage, open_storage

__all__ = [
    # Main storage
    "ChatStorage",
    "open_storage",
    "Database",
    # Repositories
    "AccountStore",
    "ConversationStore",
    # Migrations
    "MIGRATIONS",
    "ensure_schema",
    "get_schema_version",
]
