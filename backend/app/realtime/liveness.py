"""Heartbeat supervision of live connections.

Every sweep, a connection that has not answered the previous ping is
closed and unregistered; every other connection has its liveness flag
cleared and gets a fresh ping. A client that vanished without a clean
close is therefore evicted within two sweep intervals.

    ALIVE --ping--> AWAITING_PONG --pong--> ALIVE
                    AWAITING_PONG --next sweep--> TERMINATED
"""
import asyncio
import logging
from typing import Optional

from app.errors import CLOSE_GOING_AWAY

from .protocol import ping_event
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 15.0


class LivenessSupervisor:
    """Periodic ping/evict loop over a ConnectionRegistry."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    ) -> None:
        self._registry = registry
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> int:
        """Run one heartbeat pass.

        Returns:
            Number of connections terminated.
        """
        terminated = 0
        for connection in self._registry.live_connections():
            if not connection.is_alive:
                logger.info(
                    f"[Liveness] Terminating unresponsive connection {connection.id} "
                    f"(user={connection.user_id})"
                )
                await self._registry.close(connection, CLOSE_GOING_AWAY, "Heartbeat timeout")
                terminated += 1
                continue
            connection.is_alive = False
            connection.push(ping_event())
        return terminated

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception as exc:
                logger.error(f"[Liveness] Sweep failed: {exc}")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"[Liveness] Heartbeat started (interval={self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[Liveness] Heartbeat stopped")
