"""Realtime WebSocket endpoint.

This module provides:
    - WebSocket /ws: one connection per client session

Protocol Flow:
    1. Client connects → connection registered, unbound
    2. Client sends: {type: "join", userId}
       → connection bound to the user (invalid id → close 1008)
    3. Client sends: {type: "enterChat", chatWith}
       → active chat partner set, conversation marked read
    4. Client sends: {type: "leaveChat"}
       → active chat partner cleared
    5. Server sends: {type: "ping"} every heartbeat; client answers {type: "pong"}
    6. Server pushes newMessage / newNotification / messagesRead /
       notificationsRead as REST writes happen
    7. On disconnect → connection unregistered

Malformed frames (invalid JSON, unknown type) close the socket with 1003.
"""
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.auth.service import InvalidToken
from app.dependencies import Services, get_services
from app.errors import CLOSE_POLICY_VIOLATION, ProtocolError, StorageError

from .protocol import EnterChatFrame, JoinFrame, LeaveChatFrame, PongFrame, parse_client_frame
from .registry import Connection

logger = logging.getLogger(__name__)

router = APIRouter()


def _verify_join_token(services: Services, frame: JoinFrame) -> None:
    """Check the optional join token when the deployment requires one."""
    if not services.config.realtime.require_join_token:
        return
    if not frame.token:
        raise ProtocolError(CLOSE_POLICY_VIOLATION, "Join token required")
    try:
        principal = services.tokens.verify(frame.token)
    except InvalidToken:
        raise ProtocolError(CLOSE_POLICY_VIOLATION, "Invalid join token")
    if principal.user_id != frame.userId:
        raise ProtocolError(CLOSE_POLICY_VIOLATION, "Join token does not match userId")


async def _handle_frame(services: Services, connection: Connection, raw: str) -> None:
    """Apply one inbound frame. Raises ProtocolError on violations."""
    frame = parse_client_frame(raw)
    registry = services.registry

    # --- Handle PONG (heartbeat answer) ---
    if isinstance(frame, PongFrame):
        registry.mark_alive(connection)
        return

    # --- Handle JOIN (identity binding) ---
    if isinstance(frame, JoinFrame):
        _verify_join_token(services, frame)
        registry.bind(connection, frame.userId)
        return

    # --- Handle ENTER_CHAT (conversation opened) ---
    if isinstance(frame, EnterChatFrame):
        registry.enter_chat(connection, frame.chatWith)
        try:
            services.read_state.mark_conversation_read(connection.user_id, frame.chatWith)
        except StorageError as exc:
            # The client reconciles via PUT /messages/read
            logger.error(
                f"[WS] Could not mark chat {connection.user_id}<-{frame.chatWith} read: {exc}"
            )
        return

    # --- Handle LEAVE_CHAT ---
    if isinstance(frame, LeaveChatFrame):
        registry.leave_chat(connection)
        return


@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    services: Services = Depends(get_services),
) -> None:
    """WebSocket endpoint for push delivery and chat presence.

    Frames are handled strictly in arrival order for each connection.
    """
    await websocket.accept()
    registry = services.registry
    connection = registry.register(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(code=message.get("code", 1000))

            try:
                await _handle_frame(services, connection, message.get("text"))
            except ProtocolError as exc:
                logger.warning(
                    f"[WS] Protocol error on {connection.id} (user={connection.user_id}): "
                    f"{exc.reason} → close {exc.code}"
                )
                await registry.close(connection, exc.code, exc.reason)
                return

    except WebSocketDisconnect:
        logger.info(f"[WS] Connection {connection.id} (user={connection.user_id}) disconnected")
    finally:
        registry.unregister(connection)
