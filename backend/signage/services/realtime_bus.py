"""Push display session snapshots to the WebSocket connections of each display client."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from fastapi import WebSocket

from ..models.display import DisplaySessionMessage, SessionResponse

logger = logging.getLogger(__name__)


class RealtimeBroadcaster:
    """Track display connections by client id.

    A client may hold several connections (reloaded tabs, mirrored screens).
    Pushes for one client are delivered in the order they were issued.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._connections: Dict[WebSocket, Optional[str]] = {}
        self._client_locks: Dict[str, asyncio.Lock] = {}

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[websocket] = None

    async def identify(self, websocket: WebSocket, client_id: Optional[str]) -> None:
        """Bind a connection to the client id announced in its hello."""
        async with self._lock:
            if websocket in self._connections:
                self._connections[websocket] = client_id

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            client_id = self._connections.pop(websocket, None)
            if client_id is None or client_id in self._connections.values():
                return
            lock = self._client_locks.get(client_id)
            if lock is not None and not lock.locked():
                del self._client_locks[client_id]

    async def list_clients(self) -> List[dict]:
        async with self._lock:
            counts: Dict[Optional[str], int] = {}
            for client_id in self._connections.values():
                counts[client_id] = counts.get(client_id, 0) + 1
        clients = [{"client_id": client_id, "connections": count} for client_id, count in counts.items()]
        clients.sort(key=lambda item: (item["client_id"] is None, item["client_id"] or ""))
        return clients

    async def push_session(self, client_id: str, session: Optional[SessionResponse]) -> None:
        """Send ``session`` (or None after disposal) to every connection of ``client_id``."""
        message = DisplaySessionMessage(client_id=client_id, session=session).model_dump(mode="json")
        async with self._client_lock(client_id):
            async with self._lock:
                targets = [ws for ws, owner in self._connections.items() if owner == client_id]
            for websocket in targets:
                await self._send(websocket, message)

    async def send_session(
        self, websocket: WebSocket, client_id: str, session: Optional[SessionResponse]
    ) -> None:
        """Send the current snapshot to a single connection (reply to hello)."""
        message = DisplaySessionMessage(client_id=client_id, session=session).model_dump(mode="json")
        async with self._client_lock(client_id):
            await self._send(websocket, message)

    def _client_lock(self, client_id: str) -> asyncio.Lock:
        lock = self._client_locks.get(client_id)
        if lock is None:
            lock = self._client_locks[client_id] = asyncio.Lock()
        return lock

    async def _send(self, websocket: WebSocket, message: dict) -> None:
        try:
            await websocket.send_json(message)
        except Exception as exc:  # noqa: BLE001 - a dead socket only drops itself
            logger.info("dropping display connection after failed send: %s", exc)
            await self.disconnect(websocket)


realtime_broadcaster = RealtimeBroadcaster()
