# rentez/realtime/connection_manager.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import WebSocket

log = logging.getLogger(__name__)


class ConnectionManager:
    """Websockets held by this process, keyed by a per-connection id."""

    def __init__(self):
        self.active_connections: dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self.active_connections[connection_id] = websocket
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self.active_connections.pop(connection_id, None)

    def has(self, connection_id: str) -> bool:
        return connection_id in self.active_connections

    async def send(self, connection_id: str, frame: dict[str, Any]) -> bool:
        ws = self.active_connections.get(connection_id)
        if ws is None:
            return False
        try:
            await ws.send_json(frame)
        except Exception:
            # peer went away mid-send; the receive loop cleans up
            log.warning("send failed", extra={"connection_id": connection_id})
            return False
        return True
