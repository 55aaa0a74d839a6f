"""WebSocket connection manager"""
import asyncio
import logging
from typing import Optional, Set
from fastapi import WebSocket

from ..services.task_store import TaskStore

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Push store snapshots to connected viewers"""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self._pending: Optional[asyncio.Task] = None
        # Set by every store change, cleared when a snapshot is taken
        self._dirty = False

    async def connect(self, websocket: WebSocket):
        """Accept a new WebSocket connection"""
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"WebSocket connected. Total connections: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection"""
        self.active_connections.discard(websocket)
        logger.info(f"WebSocket disconnected. Total connections: {len(self.active_connections)}")

    async def broadcast_all(self, data: dict):
        """Broadcast message to all connected WebSockets"""
        dead_connections = set()

        for websocket in list(self.active_connections):
            try:
                await websocket.send_json(data)
            except Exception as e:
                logger.error(f"Error broadcasting to WebSocket: {e}")
                dead_connections.add(websocket)

        for websocket in dead_connections:
            self.disconnect(websocket)

    def on_store_change(self, kind: str, store: TaskStore):
        """Store callback: schedule one broadcast for a burst of changes"""
        if not self.active_connections:
            return
        self._dirty = True
        if self._pending and not self._pending.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._pending = loop.create_task(self._broadcast_snapshot(store))

    async def _broadcast_snapshot(self, store: TaskStore):
        # Let the rest of the current burst land first
        await asyncio.sleep(0)
        while self._dirty:
            self._dirty = False
            await self.broadcast_all({"type": "snapshot", "data": store.snapshot()})


# Global WebSocket manager instance
ws_manager = WebSocketManager()
