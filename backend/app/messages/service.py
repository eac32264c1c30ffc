"""MessageStore: DuckDB-backed direct messages.

Messages are never physically deleted; a soft delete clears the read flag
so that ``is_deleted AND is_read`` can never hold (also enforced by a
CHECK constraint).
"""
import logging
from typing import Dict, List, Optional

from app.database import Database, new_object_id, utcnow

from .schemas import Message

logger = logging.getLogger(__name__)

_CREATE_SEQUENCE = "CREATE SEQUENCE IF NOT EXISTS messages_seq START 1"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS messages (
    id          VARCHAR PRIMARY KEY,
    seq         BIGINT DEFAULT nextval('messages_seq'),
    text        VARCHAR NOT NULL,
    sender_id   VARCHAR NOT NULL,
    receiver_id VARCHAR NOT NULL,
    timestamp   TIMESTAMP NOT NULL,
    is_read     BOOLEAN NOT NULL DEFAULT FALSE,
    is_deleted  BOOLEAN NOT NULL DEFAULT FALSE,
    CHECK (NOT (is_deleted AND is_read))
)
"""

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_messages_receiver ON messages(receiver_id)",
    "CREATE INDEX IF NOT EXISTS idx_messages_sender ON messages(sender_id)",
)

_COLUMNS = "id, text, sender_id, receiver_id, timestamp, is_read, is_deleted"


class MessageStore:
    """Persistence for Message records."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._db.execute(_CREATE_SEQUENCE)
        self._db.execute(_CREATE_TABLE)
        for statement in _INDEXES:
            self._db.execute(statement)

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    def insert(self, sender_id: str, receiver_id: str, text: str, is_read: bool = False) -> Message:
        message = Message(
            id=new_object_id(),
            text=text,
            senderId=sender_id,
            receiverId=receiver_id,
            timestamp=utcnow(),
            isRead=is_read,
        )
        self._db.execute(
            f"INSERT INTO messages ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, FALSE)",
            [
                message.id, message.text, message.senderId, message.receiverId,
                message.timestamp, message.isRead,
            ],
        )
        return message

    def mark_conversation_read(self, viewer_id: str, counterpart_id: str) -> int:
        """Flip every unread, non-deleted message counterpart → viewer to read.

        Returns:
            Number of messages that changed state.
        """
        rows = self._db.fetchall(
            """
            UPDATE messages SET is_read = TRUE
            WHERE receiver_id = ? AND sender_id = ?
              AND is_deleted = FALSE AND is_read = FALSE
            RETURNING id
            """,
            [viewer_id, counterpart_id],
        )
        return len(rows)

    def soft_delete(self, message_id: str, sender_id: str) -> Optional[Message]:
        """Soft-delete a message owned by ``sender_id``.

        Returns:
            The updated message, or None if not found / not the sender's.
        """
        row = self._db.fetchone(
            f"""
            UPDATE messages SET is_deleted = TRUE, is_read = FALSE
            WHERE id = ? AND sender_id = ? AND is_deleted = FALSE
            RETURNING {_COLUMNS}
            """,
            [message_id, sender_id],
        )
        return self._row_to_message(row) if row else None

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def get(self, message_id: str) -> Optional[Message]:
        row = self._db.fetchone(
            f"SELECT {_COLUMNS} FROM messages WHERE id = ?", [message_id]
        )
        return self._row_to_message(row) if row else None

    def list_for_user(self, user_id: str) -> List[Message]:
        """All non-deleted messages the user sent or received, oldest first."""
        rows = self._db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM messages
            WHERE (sender_id = ? OR receiver_id = ?) AND is_deleted = FALSE
            ORDER BY timestamp ASC, seq ASC
            """,
            [user_id, user_id],
        )
        return [self._row_to_message(r) for r in rows]

    def unread_counts(self, viewer_id: str) -> Dict[str, int]:
        """Unread, non-deleted messages to ``viewer_id`` grouped by sender."""
        rows = self._db.fetchall(
            """
            SELECT sender_id, COUNT(*) FROM messages
            WHERE receiver_id = ? AND is_read = FALSE AND is_deleted = FALSE
            GROUP BY sender_id
            """,
            [viewer_id],
        )
        return {r[0]: int(r[1]) for r in rows}

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    @staticmethod
    def _row_to_message(row: tuple) -> Message:
        return Message(
            id=row[0],
            text=row[1],
            senderId=row[2],
            receiverId=row[3],
            timestamp=row[4],
            isRead=row[5],
            isDeleted=row[6],
        )
