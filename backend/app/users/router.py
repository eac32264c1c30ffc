"""User directory endpoints.

Endpoints:
    GET  /users?q=            - Search users by username
    GET  /users/{id}          - Public profile
    GET  /users/me/blocked    - Users the caller blocked
    POST /users/{id}/block    - Block a user (stops messaging both ways, drops the follow)
    POST /users/{id}/unblock  - Remove a block
    POST /users/{id}/follow   - Follow a user
    POST /users/{id}/unfollow - Stop following a user
    GET  /users/{id}/followers - Who follows a user
    GET  /users/{id}/following - Whom a user follows
    POST /users/{id}/ban      - Ban a user (admin only)
    POST /users/{id}/unban    - Lift a ban (admin only)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_principal, require_admin
from app.auth.service import Principal
from app.dependencies import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _require_other_user(services: Services, principal: Principal, user_id: str) -> None:
    if user_id == principal.user_id:
        raise HTTPException(status_code=400, detail="You cannot target yourself")
    if services.users.get(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")


@router.get("")
async def search_users(
    q: str = Query(..., min_length=1, description="Username fragment"),
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    users = services.users.search(q)
    return JSONResponse([u.model_dump() for u in users])


@router.get("/me/blocked")
async def list_blocked(
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    return {"blocked": services.users.blocked_ids(principal.user_id)}


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    user = services.users.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return JSONResponse(user.model_dump())


@router.post("/{user_id}/block")
async def block_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    _require_other_user(services, principal, user_id)
    if not services.users.block(principal.user_id, user_id):
        raise HTTPException(status_code=400, detail="User already blocked")
    return {"msg": "User blocked"}


@router.post("/{user_id}/unblock")
async def unblock_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    _require_other_user(services, principal, user_id)
    if not services.users.unblock(principal.user_id, user_id):
        raise HTTPException(status_code=400, detail="User is not blocked")
    return {"msg": "Block removed"}


@router.post("/{user_id}/ban")
async def ban_user(
    user_id: str,
    principal: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
) -> dict:
    _require_other_user(services, principal, user_id)
    if not services.users.set_banned(user_id, True):
        raise HTTPException(status_code=400, detail="User already banned")
    logger.info("[users] Admin %s banned %s", principal.user_id, user_id)
    return {"msg": "User banned"}


@router.post("/{user_id}/unban")
async def unban_user(
    user_id: str,
    principal: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
) -> dict:
    _require_other_user(services, principal, user_id)
    if not services.users.set_banned(user_id, False):
        raise HTTPException(status_code=400, detail="User is not banned")
    logger.info("[users] Admin %s unbanned %s", principal.user_id, user_id)
    return {"msg": "Ban removed"}


@router.get("/{user_id}/followers")
async def list_followers(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Users following ``user_id``; users the caller blocked are hidden."""
    if services.users.get(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    refs = services.users.followers(user_id, viewer_id=principal.user_id)
    return JSONResponse([r.model_dump() for r in refs])


@router.get("/{user_id}/following")
async def list_following(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Users ``user_id`` follows; users the caller blocked are hidden."""
    if services.users.get(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    refs = services.users.following(user_id, viewer_id=principal.user_id)
    return JSONResponse([r.model_dump() for r in refs])


@router.post("/{user_id}/follow")
async def follow_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    _require_other_user(services, principal, user_id)
    if user_id in services.users.blocked_ids(principal.user_id):
        raise HTTPException(status_code=400, detail="You cannot follow a user you blocked")
    if not services.users.follow(principal.user_id, user_id):
        raise HTTPException(status_code=400, detail="Already following")
    return {"msg": "Followed"}


@router.post("/{user_id}/unfollow")
async def unfollow_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    _require_other_user(services, principal, user_id)
    services.users.unfollow(principal.user_id, user_id)
    return {"msg": "Unfollowed"}
