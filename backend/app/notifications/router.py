"""Notification endpoints.

Endpoints:
    GET  /notifications              - Caller's notifications, newest first
    POST /notifications              - Create a notification for a user (pushed live)
    PUT  /notifications/read         - Mark all of the caller's notifications read
    GET  /notifications/unread/count - Number of unread notifications
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_principal
from app.auth.service import Principal
from app.dependencies import Services, get_services

from .schemas import NotificationCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    notifications = services.notifications.list_for_user(principal.user_id, limit)
    return JSONResponse([n.model_dump(mode="json") for n in notifications])


@router.post("", status_code=201)
async def create_notification(
    body: NotificationCreate,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Create a notification for ``userId`` and push it to their live sockets.

    Returns:
        The stored notification (201), or 404 if the target user is unknown.
    """
    if services.users.get(body.userId) is None:
        raise HTTPException(status_code=404, detail="User not found")
    notification = services.delivery.create_notification(body.userId, body.message)
    logger.info("[notifications] %s notified %s", principal.user_id, body.userId)
    return JSONResponse(notification.model_dump(mode="json"), status_code=201)


@router.put("/read")
async def mark_read(
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    """Mark all of the caller's notifications read."""
    updated = services.read_state.mark_notifications_read(principal.user_id)
    return {"updated": updated}


@router.get("/unread/count")
async def unread_count(
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    return {"count": services.notifications.unread_count(principal.user_id)}
