"""NotificationStore: DuckDB-backed user notifications."""
import logging
from typing import List

from app.database import Database, new_object_id, utcnow

from .schemas import MAX_NOTIFICATION_LENGTH, Notification

logger = logging.getLogger(__name__)

_CREATE_SEQUENCE = "CREATE SEQUENCE IF NOT EXISTS notifications_seq START 1"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS notifications (
    id         VARCHAR PRIMARY KEY,
    seq        BIGINT DEFAULT nextval('notifications_seq'),
    user_id    VARCHAR NOT NULL,
    message    VARCHAR NOT NULL,
    is_read    BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP NOT NULL
)
"""

_INDEX = "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id)"

_COLUMNS = "id, user_id, message, is_read, created_at"


class NotificationStore:
    """Persistence for Notification records."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._db.execute(_CREATE_SEQUENCE)
        self._db.execute(_CREATE_TABLE)
        self._db.execute(_INDEX)

    def create(self, user_id: str, message: str) -> Notification:
        """Persist a notification; text beyond the column limit is cut."""
        notification = Notification(
            id=new_object_id(),
            userId=user_id,
            message=message[:MAX_NOTIFICATION_LENGTH],
            createdAt=utcnow(),
        )
        self._db.execute(
            f"INSERT INTO notifications ({_COLUMNS}) VALUES (?, ?, ?, FALSE, ?)",
            [notification.id, notification.userId, notification.message, notification.createdAt],
        )
        return notification

    def list_for_user(self, user_id: str, limit: int = 50) -> List[Notification]:
        """Newest first."""
        rows = self._db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM notifications
            WHERE user_id = ?
            ORDER BY created_at DESC, seq DESC
            LIMIT ?
            """,
            [user_id, limit],
        )
        return [
            Notification(id=r[0], userId=r[1], message=r[2], isRead=r[3], createdAt=r[4])
            for r in rows
        ]

    def mark_all_read(self, user_id: str) -> int:
        rows = self._db.fetchall(
            "UPDATE notifications SET is_read = TRUE "
            "WHERE user_id = ? AND is_read = FALSE RETURNING id",
            [user_id],
        )
        return len(rows)

    def unread_count(self, user_id: str) -> int:
        row = self._db.fetchone(
            "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND is_read = FALSE",
            [user_id],
        )
        return int(row[0]) if row else 0
