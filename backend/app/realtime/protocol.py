"""WebSocket frame protocol.

Client → server frames are a tagged union on ``type``; anything that does
not parse into one of them is a protocol error (close code 1003).

Client → server:
    - join:      {type, userId, token?}
    - enterChat: {type, chatWith}
    - leaveChat: {type}
    - pong:      {type}            (answer to a server ping)

Server → client:
    - newMessage:        {type, message}
    - newNotification:   {type, notification}
    - notificationsRead: {type}
    - messagesRead:      {type, by}
    - ping:              {type}
"""
import json
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.errors import CLOSE_UNSUPPORTED_DATA, ProtocolError


# =============================================================================
# Client frames
# =============================================================================


class _Frame(BaseModel):
    model_config = ConfigDict(extra="ignore")


class JoinFrame(_Frame):
    type: Literal["join"]
    userId: Any  # validated by the registry (1008), not the parser (1003)
    token: Optional[str] = None


class EnterChatFrame(_Frame):
    type: Literal["enterChat"]
    chatWith: Any


class LeaveChatFrame(_Frame):
    type: Literal["leaveChat"]


class PongFrame(_Frame):
    type: Literal["pong"]


ClientFrame = Annotated[
    Union[JoinFrame, EnterChatFrame, LeaveChatFrame, PongFrame],
    Field(discriminator="type"),
]

_client_frame_adapter: TypeAdapter = TypeAdapter(ClientFrame)


def parse_client_frame(raw: Optional[str]) -> Union[JoinFrame, EnterChatFrame, LeaveChatFrame, PongFrame]:
    """Parse one text frame.

    Raises:
        ProtocolError: (1003) for binary/empty frames, invalid JSON, unknown
            ``type`` or missing required fields.
    """
    if raw is None:
        raise ProtocolError(CLOSE_UNSUPPORTED_DATA, "Text frames only")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise ProtocolError(CLOSE_UNSUPPORTED_DATA, "Invalid JSON")
    if not isinstance(payload, dict):
        raise ProtocolError(CLOSE_UNSUPPORTED_DATA, "Frame must be a JSON object")
    try:
        return _client_frame_adapter.validate_python(payload)
    except ValidationError:
        raise ProtocolError(
            CLOSE_UNSUPPORTED_DATA, f"Malformed or unknown frame: {payload.get('type')!r}"
        )


# =============================================================================
# Server events
# =============================================================================


def new_message_event(message: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "newMessage", "message": message}


def new_notification_event(notification: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "newNotification", "notification": notification}


def notifications_read_event() -> Dict[str, Any]:
    return {"type": "notificationsRead"}


def messages_read_event(by: str) -> Dict[str, Any]:
    return {"type": "messagesRead", "by": by}


def ping_event() -> Dict[str, Any]:
    return {"type": "ping"}
