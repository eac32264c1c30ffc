"""Pydantic schemas for notifications."""
from datetime import datetime

from pydantic import BaseModel, Field

from app.messages.schemas import OBJECT_ID_PATTERN

MAX_NOTIFICATION_LENGTH = 100


class NotificationCreate(BaseModel):
    """Request body for POST /notifications."""
    userId: str = Field(..., pattern=OBJECT_ID_PATTERN, description="Target user")
    message: str = Field(..., min_length=1, max_length=MAX_NOTIFICATION_LENGTH)


class Notification(BaseModel):
    """A stored notification."""
    id: str
    userId: str
    message: str
    isRead: bool = False
    createdAt: datetime
