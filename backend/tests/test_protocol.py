"""Tests for WebSocket frame parsing and server event shapes."""
import json

import pytest

from app.errors import CLOSE_UNSUPPORTED_DATA, ProtocolError
from app.realtime.protocol import (
    EnterChatFrame,
    JoinFrame,
    LeaveChatFrame,
    PongFrame,
    messages_read_event,
    new_message_event,
    parse_client_frame,
)


class TestParseClientFrame:
    """Tests for parse_client_frame."""

    def test_join(self):
        frame = parse_client_frame(json.dumps({"type": "join", "userId": "a" * 24}))
        assert isinstance(frame, JoinFrame)
        assert frame.userId == "a" * 24
        assert frame.token is None

    def test_join_accepts_any_user_id_type(self):
        # Identity validation belongs to the registry, which closes with 1008
        frame = parse_client_frame(json.dumps({"type": "join", "userId": 123}))
        assert isinstance(frame, JoinFrame)
        assert frame.userId == 123

    def test_join_with_token(self):
        frame = parse_client_frame(json.dumps({"type": "join", "userId": "x", "token": "t"}))
        assert frame.token == "t"

    def test_enter_chat(self):
        frame = parse_client_frame(json.dumps({"type": "enterChat", "chatWith": "b" * 24}))
        assert isinstance(frame, EnterChatFrame)
        assert frame.chatWith == "b" * 24

    def test_leave_chat_and_pong(self):
        assert isinstance(parse_client_frame('{"type": "leaveChat"}'), LeaveChatFrame)
        assert isinstance(parse_client_frame('{"type": "pong"}'), PongFrame)

    def test_extra_fields_ignored(self):
        frame = parse_client_frame('{"type": "leaveChat", "chatWith": "whatever"}')
        assert isinstance(frame, LeaveChatFrame)

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[1, 2, 3]",
            '"join"',
            '{"type": "dance"}',
            '{"userId": "abc"}',
            '{"type": "join"}',
            '{"type": "enterChat"}',
            None,
        ],
    )
    def test_malformed_frames_are_unsupported_data(self, raw):
        with pytest.raises(ProtocolError) as exc:
            parse_client_frame(raw)
        assert exc.value.code == CLOSE_UNSUPPORTED_DATA


class TestServerEvents:
    """Tests for outbound event builders."""

    def test_new_message_event(self):
        event = new_message_event({"id": "m1"})
        assert event == {"type": "newMessage", "message": {"id": "m1"}}

    def test_messages_read_event_names_reader(self):
        assert messages_read_event("r" * 24) == {"type": "messagesRead", "by": "r" * 24}
