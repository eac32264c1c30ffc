"""Manual smoke test against a running server.

Usage:
    python ws_smoke.py <userId> <chatWithId> [ws://localhost:8000/ws]

Joins as ``userId``, opens the conversation with ``chatWithId`` and prints
every pushed event, answering heartbeat pings.
"""
import asyncio
import json
import sys

import websockets


async def watch(user_id: str, chat_with: str, url: str) -> None:
    async with websockets.connect(url) as ws:
        await ws.send(json.dumps({"type": "join", "userId": user_id}))
        await ws.send(json.dumps({"type": "enterChat", "chatWith": chat_with}))
        print(f"Joined as {user_id}, viewing chat with {chat_with}")

        async for raw in ws:
            event = json.loads(raw)
            if event.get("type") == "ping":
                await ws.send(json.dumps({"type": "pong"}))
                continue
            print(f"Received: {event}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    target = sys.argv[3] if len(sys.argv) > 3 else "ws://localhost:8000/ws"
    asyncio.run(watch(sys.argv[1], sys.argv[2], target))
