"""
In-process chat hub for the /ws endpoint.
Keeps the set of connected sockets and fans messages out to all of them.
"""
from typing import Any, Dict, Set
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ChatHub:
    """Registry of connected chat clients for one application instance."""

    def __init__(self):
        self._clients: Set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        # Greeting must reach the client before it is registered for broadcasts
        await websocket.send_json({"type": "system", "text": "connected", "clients": self.client_count + 1})
        self._clients.add(websocket)
        logger.info(f"Chat client connected ({self.client_count} online)")

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info(f"Chat client disconnected ({self.client_count} online)")

    async def broadcast(self, message: Dict[str, Any]) -> None:
        """Send a message to every client, dropping sockets that fail."""
        for websocket in list(self._clients):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping chat client after send failure: {str(e)}")
                self._clients.discard(websocket)
