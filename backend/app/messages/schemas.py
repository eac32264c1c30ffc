"""Pydantic schemas for direct messages."""
import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.users.schemas import UserRef

MAX_MESSAGE_LENGTH = 1000

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"
OBJECT_ID_RE = re.compile(OBJECT_ID_PATTERN)


def is_object_id(value: object) -> bool:
    """True for a 24-hex-character identity token."""
    return isinstance(value, str) and OBJECT_ID_RE.match(value) is not None


class MessageCreate(BaseModel):
    """Request body for sending a message."""
    text: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    receiver: str = Field(..., pattern=OBJECT_ID_PATTERN)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("text must not be blank")
        return value


class MarkReadRequest(BaseModel):
    """Request body for PUT /messages/read."""
    sender: str = Field(..., pattern=OBJECT_ID_PATTERN)


class Message(BaseModel):
    """A stored message.

    isDeleted implies not isRead; the table enforces it.
    """
    id: str
    text: str
    senderId: str
    receiverId: str
    timestamp: datetime
    isRead: bool = False
    isDeleted: bool = False


class JoinedMessage(BaseModel):
    """A message with sender/receiver display fields, as sent to clients."""
    id: str
    text: str
    sender: UserRef
    receiver: UserRef
    timestamp: datetime
    isRead: bool = False
    isDeleted: bool = False
