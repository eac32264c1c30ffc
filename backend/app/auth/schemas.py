"""Pydantic schemas for sign-up and login."""
from typing import Optional

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=72)


class AccountInfo(BaseModel):
    id: str
    username: str
    email: Optional[str] = None


class AuthResponse(BaseModel):
    """Bearer token plus the account it belongs to."""
    token: str
    user: AccountInfo
