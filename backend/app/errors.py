"""Application error taxonomy.

Routers translate these into HTTP responses; the WebSocket endpoint turns
ProtocolError into a close frame.
"""
from typing import Optional

# WebSocket close codes (RFC 6455)
CLOSE_GOING_AWAY = 1001
CLOSE_UNSUPPORTED_DATA = 1003
CLOSE_POLICY_VIOLATION = 1008


class StorageError(Exception):
    """A persistence call failed. The caller may retry the whole operation."""

    retryable = True


class UnknownUser(Exception):
    """A referenced user does not exist."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class DeliveryRejected(Exception):
    """A message write was refused before anything was persisted.

    Attributes:
        reason: Machine-readable reason (blocked, banned, self).
    """

    def __init__(self, reason: str, detail: Optional[str] = None) -> None:
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail or reason


class ProtocolError(Exception):
    """A WebSocket client broke the frame protocol.

    Attributes:
        code: Close code to send before dropping the connection.
        reason: Short human-readable reason (sent as the close reason).
    """

    def __init__(self, code: int, reason: str) -> None:
        super().__init__(reason)
        self.code = code
        self.reason = reason
