"""
Conversation repository for PocketChat.

Owns the ``messages`` table. Messages are append-only; a conversation is
every message exchanged between two accounts in either direction,
ordered by id.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..exceptions import EmptyContentError, NotFoundError
from ..models import Message
from .connection import Database

logger = logging.getLogger(__name__)

CONVERSATION_SQL = """
SELECT * FROM messages
WHERE (sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?)
ORDER BY id ASC
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConversationStore:
    """
    Repository for direct messages.

    Example:
        conversations = ConversationStore(db)
        conversations.send("alice", "bob", "hi")
        conversations.send("bob", "alice", image_uri="file://img.jpg")
        conversations.conversation("bob", "alice")  # both, oldest first
    """

    def __init__(self, db: Database, require_known_accounts: bool = False):
        """
        Args:
            db: Open store handle.
            require_known_accounts: Reject messages whose sender or receiver
                has no account.
        """
        self._db = db
        self._require_known_accounts = require_known_accounts

    def send(
        self,
        sender: str,
        receiver: str,
        text: Optional[str] = None,
        image_uri: Optional[str] = None,
    ) -> Message:
        """
        Append a message.

        Args:
            sender: Sending username.
            receiver: Receiving username.
            text: Optional text body; blank text counts as absent.
            image_uri: Optional attached image URI; blank counts as absent.

        Returns:
            The stored message; its id is greater than every earlier one.

        Raises:
            EmptyContentError: If there is neither text nor an image.
            NotFoundError: If known accounts are required and one is missing.
        """
        body = text if text is not None and text.strip() else None
        image = image_uri if image_uri is not None and image_uri.strip() else None
        if body is None and image is None:
            raise EmptyContentError(details={"sender": sender, "receiver": receiver})

        timestamp = _now()
        with self._db.transaction() as conn:
            if self._require_known_accounts:
                for username in (sender, receiver):
                    known = conn.execute(
                        "SELECT 1 FROM users WHERE username = ?", (username,)
                    ).fetchone()
                    if not known:
                        raise NotFoundError("users", username)

            cursor = conn.execute(
                """
                INSERT INTO messages (sender, receiver, message, image, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (sender, receiver, body or "", image, timestamp),
            )
            message_id = cursor.lastrowid

        logger.debug(f"Stored message {message_id} from '{sender}' to '{receiver}'")
        return Message(
            id=message_id,
            sender=sender,
            receiver=receiver,
            message=body,
            image=image,
            timestamp=timestamp,
        )

    def conversation(self, user_a: str, user_b: str) -> list[Message]:
        """
        Get every message between two accounts, oldest first.

        The result is the same whichever order the two usernames are given in.
        """
        rows = self._db.fetchall(CONVERSATION_SQL, (user_a, user_b, user_b, user_a))
        return [Message.from_row(row) for row in rows]

    def count(self, user_a: str, user_b: str) -> int:
        """Number of messages exchanged between two accounts."""
        result = self._db.fetchone(
            """
            SELECT COUNT(*) FROM messages
            WHERE (sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?)
            """,
            (user_a, user_b, user_b, user_a),
        )
        return result[0] if result else 0

    def participant_photos(self, user_a: str, user_b: str) -> dict[str, Optional[str]]:
        """Profile photo URI of both participants, keyed by username."""
        rows = self._db.fetchall(
            "SELECT username, photo FROM users WHERE username IN (?, ?)",
            (user_a, user_b),
        )
        photos: dict[str, Optional[str]] = {user_a: None, user_b: None}
        photos.update({row["username"]: row["photo"] or None for row in rows})
        return photos
