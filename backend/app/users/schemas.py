"""Pydantic schemas for the user directory."""
from typing import Optional

from pydantic import BaseModel, Field


class UserRef(BaseModel):
    """Display fields attached to messages (sender/receiver)."""
    id: str
    username: Optional[str] = None


class User(BaseModel):
    """Public user profile."""
    id: str = Field(..., description="24-hex user ID")
    username: str = Field(..., description="Unique username")
    isBanned: bool = Field(default=False, description="Banned users cannot sign in or be messaged")
