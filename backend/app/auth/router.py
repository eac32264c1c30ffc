"""Account endpoints.

Endpoints:
    POST /auth/signup - Register (username, email, password) and get a token
    POST /auth/login  - Exchange email + password for a token

Both return ``{"token", "user": {id, username, email}}``. Handlers are
plain functions so bcrypt runs in the threadpool, off the event loop.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.dependencies import Services, get_services

from .passwords import get_password_hash, verify_password
from .schemas import AccountInfo, AuthResponse, LoginRequest, SignupRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201)
def signup(
    body: SignupRequest,
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Create an account.

    Returns:
        Token and account (201), or 400 if the username or email is taken.
    """
    if services.users.is_taken(body.username, body.email):
        raise HTTPException(status_code=400, detail="Username or email already in use")

    user = services.users.create(
        body.username,
        email=body.email,
        password_hash=get_password_hash(body.password),
    )
    response = AuthResponse(
        token=services.tokens.issue(user.id),
        user=AccountInfo(id=user.id, username=user.username, email=body.email),
    )
    logger.info("[auth] Signed up %s (%s)", user.id, user.username)
    return JSONResponse(response.model_dump(), status_code=201)


@router.post("/login")
def login(
    body: LoginRequest,
    services: Services = Depends(get_services),
) -> dict:
    """Verify credentials and issue a token.

    Returns:
        Token and account. 400 for unknown email or wrong password, 403 for
        banned accounts.
    """
    found = services.users.credentials(body.email)
    if found is None or not found[1] or not verify_password(body.password, found[1]):
        raise HTTPException(status_code=400, detail="Invalid email or password")

    user, _ = found
    if user.isBanned:
        raise HTTPException(status_code=403, detail="Account is banned")

    logger.info("[auth] Login %s", user.id)
    return AuthResponse(
        token=services.tokens.issue(user.id),
        user=AccountInfo(id=user.id, username=user.username, email=body.email),
    ).model_dump()
