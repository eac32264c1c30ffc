"""FastAPI dependencies that authenticate REST callers."""
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.dependencies import Services, get_services

from .service import InvalidToken, Principal

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    services: Services = Depends(get_services),
) -> Principal:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    Banned or unknown users are rejected the same way as bad tokens.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Bearer token required")

    try:
        principal = services.tokens.verify(credentials.credentials)
    except InvalidToken as exc:
        logger.info("[Auth] Rejected token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid token")

    user = services.users.get(principal.user_id)
    if user is None or user.isBanned:
        raise HTTPException(status_code=401, detail="Banned user or invalid token")
    return principal


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return principal
