"""Read/unread transitions for messages and notifications.

Both operations are idempotent: the target value is the constant ``True``,
so repeated or racing calls converge. State only changes through the
store; a failed write raises StorageError and nothing is pushed.
"""
import logging

from app.messages.service import MessageStore
from app.notifications.service import NotificationStore

from .protocol import messages_read_event, notifications_read_event
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class ReadStateTracker:
    """Marks conversations and notifications read and tells the other side."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        messages: MessageStore,
        notifications: NotificationStore,
    ) -> None:
        self._registry = registry
        self._messages = messages
        self._notifications = notifications

    def mark_conversation_read(self, viewer_id: str, counterpart_id: str) -> int:
        """Mark every unread message counterpart → viewer as read.

        When something changed and the counterpart currently has the viewer's
        conversation open, the counterpart's connections receive
        ``messagesRead`` so "delivered" can become "read" without polling.

        Returns:
            Number of messages that flipped to read.
        """
        updated = self._messages.mark_conversation_read(viewer_id, counterpart_id)
        if updated == 0:
            return 0

        logger.info(f"[ReadState] {viewer_id} read {updated} message(s) from {counterpart_id}")
        if self._registry.active_chat_partner(counterpart_id) == viewer_id:
            self._registry.push([counterpart_id], messages_read_event(viewer_id))
        return updated

    def mark_notifications_read(self, viewer_id: str) -> int:
        """Mark all of the viewer's notifications read and sync their other tabs."""
        updated = self._notifications.mark_all_read(viewer_id)
        if updated == 0:
            return 0

        logger.info(f"[ReadState] {viewer_id} read {updated} notification(s)")
        self._registry.push([viewer_id], notifications_read_event())
        return updated
