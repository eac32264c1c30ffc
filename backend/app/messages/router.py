"""Direct message endpoints.

Endpoints:
    GET    /messages              - Caller's conversations, oldest first
    POST   /messages              - Send a message (pushes over WebSocket)
    PUT    /messages/read         - Mark a conversation read
    GET    /messages/unread/count - Unread counts grouped by sender
    DELETE /messages/{id}         - Soft-delete a message the caller sent

Writes are persist-then-push: a 503 means nothing was stored and nothing
was pushed, and the request may be retried.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_principal
from app.auth.service import Principal
from app.dependencies import Services, get_services
from app.errors import DeliveryRejected, UnknownUser

from .schemas import MarkReadRequest, MessageCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("")
async def list_messages(
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """List every non-deleted message the caller sent or received.

    Returns:
        JSON array of messages with sender/receiver populated, oldest first.
    """
    messages = services.messages.list_for_user(principal.user_id)
    return JSONResponse([
        m.model_dump(mode="json") for m in services.delivery.join_many(messages)
    ])


@router.post("", status_code=201)
async def send_message(
    body: MessageCreate,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Send a message to another user.

    Returns:
        The stored message (201). 403 if either side blocked the other or
        the receiver is banned, 400 for self-addressed messages, 404 for an
        unknown receiver.
    """
    try:
        message = services.delivery.send_message(principal.user_id, body.receiver, body.text)
    except DeliveryRejected as exc:
        status = 400 if exc.reason == "self" else 403
        logger.info("[messages] Rejected %s -> %s: %s", principal.user_id, body.receiver, exc.reason)
        raise HTTPException(status_code=status, detail=exc.detail)
    except UnknownUser:
        raise HTTPException(status_code=404, detail="Receiver not found")
    return JSONResponse(message.model_dump(mode="json"), status_code=201)


@router.put("/read")
async def mark_read(
    body: MarkReadRequest,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    """Mark every message from ``sender`` to the caller as read."""
    updated = services.read_state.mark_conversation_read(principal.user_id, body.sender)
    if updated:
        logger.info(
            "[messages] %s read %d from %s (%d unread left)",
            principal.user_id, updated, body.sender,
            services.unread.total_unread(principal.user_id),
        )
    return {"updated": updated}


@router.get("/unread/count")
async def unread_count(
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> dict:
    """Unread message counts for the caller, keyed by sender id."""
    return services.unread.unread_counts(principal.user_id)


@router.delete("/{message_id}", status_code=204)
async def delete_message(
    message_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
) -> Response:
    """Soft-delete a message the caller sent."""
    if services.messages.soft_delete(message_id, principal.user_id) is None:
        raise HTTPException(status_code=404, detail="Message not found")
    logger.info("[messages] %s deleted message %s", principal.user_id, message_id)
    return Response(status_code=204)
