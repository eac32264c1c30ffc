"""Fan-out of new messages and notifications to live connections.

Every write follows persist-then-push: nothing is pushed unless the store
accepted the record, and push failures never fail the write. Events are
queued on each target connection straight after the commit, so a single
connection sees events in commit order.

Message flow (sender S, receiver R):
    1. Authorise (blocks, bans, self) before anything is written.
    2. If R is viewing the conversation with S, store the message as read.
    3. Push ``newMessage`` to every connection of R and of S.
    4. Otherwise (unread), create a notification for R and push it. The
       message stays committed if this step fails.
"""
import logging
from typing import Dict, List

from app.errors import DeliveryRejected, StorageError, UnknownUser
from app.messages.schemas import JoinedMessage, Message
from app.messages.service import MessageStore
from app.notifications.schemas import MAX_NOTIFICATION_LENGTH, Notification
from app.notifications.service import NotificationStore
from app.users.schemas import UserRef
from app.users.service import UserDirectory

from .protocol import new_message_event, new_notification_event
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class DeliveryRouter:
    """Persists messages/notifications and pushes them to the right sockets."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        messages: MessageStore,
        notifications: NotificationStore,
        users: UserDirectory,
    ) -> None:
        self._registry = registry
        self._messages = messages
        self._notifications = notifications
        self._users = users

    # =========================================================================
    # Messages
    # =========================================================================

    def _authorize(self, sender_id: str, receiver_id: str) -> None:
        if sender_id == receiver_id:
            raise DeliveryRejected("self", "You cannot message yourself")
        receiver = self._users.get(receiver_id)
        if receiver is None:
            raise UnknownUser(receiver_id)
        if receiver.isBanned:
            raise DeliveryRejected("banned", "Receiver is banned")
        if self._users.is_blocked_between(sender_id, receiver_id):
            raise DeliveryRejected("blocked", "Messaging between these users is blocked")

    def join_many(self, messages: List[Message]) -> List[JoinedMessage]:
        """Attach display fields to a batch with a single user lookup."""
        refs = self._users.refs(
            uid for m in messages for uid in (m.senderId, m.receiverId)
        )
        return [self._joined(m, refs) for m in messages]

    @staticmethod
    def _joined(message: Message, refs: Dict[str, UserRef]) -> JoinedMessage:
        return JoinedMessage(
            id=message.id,
            text=message.text,
            sender=refs[message.senderId],
            receiver=refs[message.receiverId],
            timestamp=message.timestamp,
            isRead=message.isRead,
            isDeleted=message.isDeleted,
        )

    def send_message(self, sender_id: str, receiver_id: str, text: str) -> JoinedMessage:
        """Persist a message and fan it out.

        Raises:
            DeliveryRejected: Blocked, banned or self-addressed; nothing stored.
            UnknownUser: Receiver does not exist; nothing stored.
            StorageError: The message write failed; nothing pushed. A failed
                notification write after the commit is logged, not raised.
        """
        self._authorize(sender_id, receiver_id)
        refs = self._users.refs([sender_id, receiver_id])

        seen = self._registry.active_chat_partner(receiver_id) == sender_id
        message = self._messages.insert(sender_id, receiver_id, text, is_read=seen)
        joined = self._joined(message, refs)

        pushed = self._registry.push(
            [receiver_id, sender_id],
            new_message_event(joined.model_dump(mode="json")),
        )
        logger.info(
            f"[Delivery] Message {message.id} {sender_id} -> {receiver_id} "
            f"(seen={seen}, receiver online={self._registry.is_online(receiver_id)}, "
            f"pushed to {pushed} connection(s))"
        )

        if not seen:
            sender_name = joined.sender.username or sender_id
            try:
                self.create_notification(receiver_id, f"New message from {sender_name}")
            except StorageError as exc:
                # The message is already committed and pushed
                logger.error(f"[Delivery] Notification for message {message.id} not stored: {exc}")
        return joined

    # =========================================================================
    # Notifications
    # =========================================================================

    def create_notification(self, user_id: str, text: str) -> Notification:
        """Persist a notification and push it to the user's connections.

        Clients de-duplicate by notification id; a redundant push is harmless.
        """
        notification = self._notifications.create(user_id, text[:MAX_NOTIFICATION_LENGTH])
        pushed = self._registry.push(
            [user_id],
            new_notification_event(notification.model_dump(mode="json")),
        )
        logger.debug(
            f"[Delivery] Notification {notification.id} for {user_id} "
            f"pushed to {pushed} connection(s)"
        )
        return notification
