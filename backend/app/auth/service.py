"""JWT bearer token verification.

Tokens carry the subject user id in the ``id`` claim and an optional
``isAdmin`` flag.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

logger = logging.getLogger(__name__)


class InvalidToken(Exception):
    """The bearer token is missing, malformed, expired or badly signed."""


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""
    user_id: str
    is_admin: bool = False


class TokenService:
    """Issues and verifies HS256 JWTs."""

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue(
        self,
        user_id: str,
        is_admin: bool = False,
        expires_in: Optional[timedelta] = None,
    ) -> str:
        """Create a signed token for ``user_id``.

        Used by sign-up, login, tooling and tests. Admin tokens are only
        issued by tooling.
        """
        payload = {"id": user_id, "isAdmin": is_admin}
        if expires_in is not None:
            payload["exp"] = datetime.now(timezone.utc) + expires_in
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Principal:
        """Decode ``token`` and return its subject.

        Raises:
            InvalidToken: If the signature, expiry or ``id`` claim is invalid.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            raise InvalidToken(str(exc)) from exc

        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken("Token has no subject id")
        return Principal(user_id=user_id, is_admin=bool(payload.get("isAdmin", False)))
