"""Pydantic schemas for the personal todo module."""
import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class TodoCreate(BaseModel):
    """Request body for creating a new todo."""
    text: str = Field(..., min_length=1, max_length=500)
    date: Optional[dt.date] = Field(default=None)       # defaults to today (UTC)


class TodoUpdate(BaseModel):
    """Request body for toggling completion."""
    completed: bool


class Todo(BaseModel):
    """Full todo record returned by the API."""
    id: str
    userId: str
    text: str
    date: dt.date
    completed: bool = False
    createdAt: dt.datetime
