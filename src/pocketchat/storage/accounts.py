"""
Account repository for PocketChat.

Owns the ``users`` table: registration, authentication, listing and
profile-photo updates.
"""

import logging
import sqlite3
from typing import Optional

from ..credentials import prepare_password, verify_password
from ..exceptions import DuplicateUsernameError, InvalidInputError, NotFoundError
from ..models import Account
from .connection import Database

logger = logging.getLogger(__name__)


def _require(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(field, value)
    return value


class AccountStore:
    """
    Repository for registered accounts.

    Example:
        accounts = AccountStore(db)
        alice = accounts.register("alice", "pw1")
        accounts.authenticate("alice", "pw1")  # -> Account
        accounts.list_others("alice")          # -> [bob, ...]
    """

    def __init__(self, db: Database):
        self._db = db

    def register(self, username: str, password: str) -> Account:
        """
        Create a new account.

        Args:
            username: Unique, case-sensitive username.
            password: Password to store.

        Returns:
            The new account, with no photo.

        Raises:
            InvalidInputError: If username or password is blank.
            DuplicateUsernameError: If the username is taken.
        """
        _require("username", username)
        _require("password", password)
        stored = prepare_password(password)

        try:
            with self._db.transaction() as conn:
                exists = conn.execute(
                    "SELECT 1 FROM users WHERE username = ?", (username,)
                ).fetchone()
                if exists:
                    raise DuplicateUsernameError(username)
                cursor = conn.execute(
                    "INSERT INTO users (username, password, photo) VALUES (?, ?, ?)",
                    (username, stored, None),
                )
                account_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            # Another process inserted between our check and insert.
            raise DuplicateUsernameError(username) from e

        logger.info(f"Registered account '{username}' (id {account_id})")
        return Account(id=account_id, username=username, password=stored, photo=None)

    def authenticate(self, username: str, password: str) -> Optional[Account]:
        """
        Check credentials.

        Returns:
            The account on an exact username and password match, None otherwise.
        """
        account = self.get(username)
        if account is None or not verify_password(account.password, password):
            logger.debug(f"Authentication failed for '{username}'")
            return None
        return account

    def get(self, username: str) -> Optional[Account]:
        """Get an account by username."""
        row = self._db.fetchone(
            "SELECT * FROM users WHERE username = ?",
            (username,),
        )
        return Account.from_row(row) if row else None

    def exists(self, username: str) -> bool:
        """Whether an account with this username is registered."""
        row = self._db.fetchone(
            "SELECT 1 FROM users WHERE username = ?",
            (username,),
        )
        return row is not None

    def list_others(self, excluding_username: str) -> list[Account]:
        """
        List every account except one.

        Args:
            excluding_username: Username to leave out, usually the caller's own.

        Returns:
            Accounts ordered by id.
        """
        rows = self._db.fetchall(
            "SELECT * FROM users WHERE username != ? ORDER BY id ASC",
            (excluding_username,),
        )
        return [
            account
            for account in (Account.from_row(row) for row in rows)
            if account.username != excluding_username
        ]

    def count(self) -> int:
        """Get total account count."""
        result = self._db.fetchone("SELECT COUNT(*) FROM users")
        return result[0] if result else 0

    def get_photo(self, username: str) -> Optional[str]:
        """Get the profile photo URI, None if unset, empty or the user is unknown."""
        row = self._db.fetchone(
            "SELECT photo FROM users WHERE username = ?",
            (username,),
        )
        return (row["photo"] or None) if row else None

    def update_photo(self, username: str, uri: Optional[str]) -> Account:
        """
        Overwrite the profile photo.

        Args:
            username: Account to update.
            uri: New photo URI, or None to clear it.

        Returns:
            The updated account.

        Raises:
            NotFoundError: If no account has this username.
        """
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE users SET photo = ? WHERE username = ?",
                (uri, username),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("users", username)
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?", (username,)
            ).fetchone()

        logger.info(f"Updated profile photo for '{username}'")
        return Account.from_row(row)
