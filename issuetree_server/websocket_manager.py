"""
WebSocket Manager - Handles real-time connections and broadcasts.

Every connected renderer receives a graph_updated event when the session
changes and re-fetches the state via GET /api/graph.
"""
import asyncio
import json
import logging
from typing import Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Manages WebSocket connections and broadcasts."""

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("WebSocket connected. Total connections: %d", len(self._connections))

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("WebSocket disconnected. Total connections: %d", len(self._connections))

    async def broadcast(self, message: dict):
        """
        Broadcast a message to all connected clients.

        Clients that fail to receive are dropped.
        """
        if not self._connections:
            return

        message_text = json.dumps(message)
        failed: Set[WebSocket] = set()

        async with self._lock:
            for websocket in self._connections:
                try:
                    await websocket.send_text(message_text)
                except Exception as e:
                    logger.warning("Dropping WebSocket after failed send: %s", e)
                    failed.add(websocket)

            self._connections -= failed

    async def notify_graph_updated(self, mode: str | None = None):
        """Notify all clients that the graph or viewport changed."""
        await self.broadcast({
            "type": "graph_updated",
            "mode": mode
        })

    @property
    def connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self._connections)


# Global instance
ws_manager = WebSocketManager()
