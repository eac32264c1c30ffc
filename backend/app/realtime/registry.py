"""Connection registry for live WebSocket sessions.

This module tracks every open WebSocket, the user identity bound to it and,
per user, the counterpart whose conversation is currently on screen
("active chat partner"). The delivery router and read-state tracker look
connections up here; nothing else holds socket references.

Key features:
    - Unbound connections until a valid ``join`` (identity set at most once)
    - Multiple simultaneous connections per user (tabs, devices)
    - One active chat partner per user; the last ``enterChat`` wins
    - Per-connection outbound queue drained by a writer task, so events reach
      a socket in the order they were pushed
    - Failed sends are dropped per connection; eviction of dead sockets is
      left to the liveness supervisor and the endpoint's disconnect handling

Thread Safety:
    Mutations happen on the event loop that owns the sockets. ``push`` may be
    called from another thread; it then hands the event to the owning loop
    with ``call_soon_threadsafe``.
"""
import asyncio
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.errors import CLOSE_POLICY_VIOLATION, ProtocolError
from app.messages.schemas import is_object_id

logger = logging.getLogger(__name__)


# =============================================================================
# Connection
# =============================================================================


class Connection:
    """One live WebSocket session.

    Attributes:
        websocket: The underlying socket (anything with ``send_json``/``close``).
        id: Opaque connection id used in logs.
        user_id: Bound identity, set once by ``join``.
        active_chat_partner_id: Counterpart this connection announced via ``enterChat``.
        is_alive: Heartbeat flag; cleared on ping, set on pong.
        closed: True once the connection has been unregistered.
    """

    def __init__(self, websocket: Any) -> None:
        self.websocket = websocket
        self.id = uuid.uuid4().hex[:12]
        self.user_id: Optional[str] = None
        self.active_chat_partner_id: Optional[str] = None
        self.is_alive = True
        self.closed = False
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id!r})"

    def start(self) -> None:
        """Start the writer task on the running loop."""
        self._loop = asyncio.get_running_loop()
        self._writer = self._loop.create_task(self._drain_outbox())

    def stop(self) -> None:
        self.closed = True
        if self._writer is not None:
            self._writer.cancel()
            self._writer = None

    def push(self, event: Dict[str, Any]) -> bool:
        """Queue an event for delivery. Returns False if the connection is closed."""
        if self.closed:
            return False
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if self._loop is None or running is self._loop:
            self._outbox.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._outbox.put_nowait, event)
        return True

    async def flush(self) -> None:
        """Wait until every queued event has been sent or dropped."""
        if self._writer is not None and not self.closed:
            await self._outbox.join()

    async def _drain_outbox(self) -> None:
        while True:
            event = await self._outbox.get()
            try:
                if not self.closed:
                    await self._safe_send(event)
            finally:
                self._outbox.task_done()

    async def _safe_send(self, event: Dict[str, Any]) -> bool:
        """Send one event; a failure drops it instead of raising."""
        try:
            await self.websocket.send_json(event)
            return True
        except Exception as e:
            logger.debug(f"[Registry] Dropped {event.get('type')} for connection {self.id}: {e}")
            return False


# =============================================================================
# Connection Registry
# =============================================================================


class ConnectionRegistry:
    """Live connections, their bound users and the active-chat map.

    One instance per application; it is injected into the delivery router,
    read-state tracker and liveness supervisor rather than shared as a
    module global.
    """

    def __init__(self) -> None:
        # connection id -> Connection (every live connection, bound or not)
        self._connections: Dict[str, Connection] = {}

        # user id -> {connection id -> Connection}
        self._by_user: Dict[str, Dict[str, Connection]] = {}

        # user id -> (counterpart id, connection id that announced it)
        self._active_chats: Dict[str, Tuple[str, str]] = {}

    def __len__(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def register(self, websocket: Any) -> Connection:
        """Create an unbound connection and start its writer.

        Must be called from the event loop that owns ``websocket``.
        """
        connection = Connection(websocket)
        connection.start()
        self._connections[connection.id] = connection
        logger.info(f"[Registry] Registered connection {connection.id} ({len(self)} live)")
        return connection

    def bind(self, connection: Connection, user_id: str) -> bool:
        """Bind a user identity to a connection.

        Returns:
            True when bound, False for a repeated ``join`` with the same id.

        Raises:
            ProtocolError: (1008) if ``user_id`` is not a valid identity token
                or the connection is already bound to someone else. The
                caller is expected to close the connection.
        """
        if not is_object_id(user_id):
            raise ProtocolError(CLOSE_POLICY_VIOLATION, "Invalid user id")
        if connection.user_id is not None:
            if connection.user_id == user_id:
                logger.debug(f"[Registry] Repeated join on {connection.id} ignored")
                return False
            logger.warning(
                f"[Registry] Connection {connection.id} bound to {connection.user_id} "
                f"tried to rebind as {user_id}"
            )
            raise ProtocolError(CLOSE_POLICY_VIOLATION, "Connection already bound")
        if connection.closed:
            return False

        connection.user_id = user_id
        self._by_user.setdefault(user_id, {})[connection.id] = connection
        logger.info(f"[Registry] Connection {connection.id} bound to user {user_id}")
        return True

    def unregister(self, connection: Connection) -> None:
        """Remove a connection and any active-chat entry it owns."""
        connection.stop()
        if self._connections.pop(connection.id, None) is None:
            return

        user_id = connection.user_id
        if user_id is not None:
            sessions = self._by_user.get(user_id)
            if sessions is not None:
                sessions.pop(connection.id, None)
                if not sessions:
                    del self._by_user[user_id]
            active = self._active_chats.get(user_id)
            if active is not None and active[1] == connection.id:
                del self._active_chats[user_id]
        logger.info(f"[Registry] Unregistered connection {connection.id} ({len(self)} live)")

    async def close(self, connection: Connection, code: int, reason: str = "") -> None:
        """Close the socket with ``code`` and unregister it."""
        self.unregister(connection)
        try:
            await connection.websocket.close(code=code, reason=reason[:120])
        except Exception as e:
            logger.debug(f"[Registry] Close of {connection.id} failed: {e}")

    # =========================================================================
    # Active chat
    # =========================================================================

    def enter_chat(self, connection: Connection, counterpart_id: str) -> None:
        """Record the conversation the connection's user is viewing.

        Raises:
            ProtocolError: (1008) if the connection is unbound or the
                counterpart id is malformed.
        """
        if connection.user_id is None:
            raise ProtocolError(CLOSE_POLICY_VIOLATION, "enterChat before join")
        if not is_object_id(counterpart_id):
            raise ProtocolError(CLOSE_POLICY_VIOLATION, "Invalid chat partner id")
        connection.active_chat_partner_id = counterpart_id
        self._active_chats[connection.user_id] = (counterpart_id, connection.id)
        logger.debug(f"[Registry] User {connection.user_id} is viewing chat with {counterpart_id}")

    def leave_chat(self, connection: Connection) -> None:
        connection.active_chat_partner_id = None
        if connection.user_id is None:
            return
        active = self._active_chats.get(connection.user_id)
        if active is not None and active[1] == connection.id:
            del self._active_chats[connection.user_id]

    def active_chat_partner(self, user_id: str) -> Optional[str]:
        active = self._active_chats.get(user_id)
        return active[0] if active else None

    # =========================================================================
    # Lookup and push
    # =========================================================================

    def live_connections(self) -> List[Connection]:
        return list(self._connections.values())

    def connections_for(self, user_id: str) -> List[Connection]:
        """All live, bound connections of ``user_id`` (empty if offline)."""
        return list(self._by_user.get(user_id, {}).values())

    def is_online(self, user_id: str) -> bool:
        return bool(self._by_user.get(user_id))

    def mark_alive(self, connection: Connection) -> None:
        connection.is_alive = True

    def push(self, user_ids: Iterable[str], event: Dict[str, Any]) -> int:
        """Queue ``event`` once on every live connection of the given users.

        Returns:
            Number of connections the event was queued on.
        """
        targets: Dict[str, Connection] = {}
        for user_id in user_ids:
            for connection in self.connections_for(user_id):
                targets[connection.id] = connection
        return sum(1 for connection in targets.values() if connection.push(event))

    async def flush(self) -> None:
        """Wait for all queued events on all live connections."""
        await asyncio.gather(*(c.flush() for c in self.live_connections()))
