"""
Chat WebSocket endpoint.
Every valid message is stamped and broadcast to all connected clients.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from datetime import datetime, timezone
import logging

from studio_site.schemas import ChatMessageIn, ChatMessageOut
from studio_site.services.chat import ChatHub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket):
    hub: ChatHub = websocket.app.state.chat_hub
    try:
        await hub.connect(websocket)
        while True:
            raw = await websocket.receive_text()
            try:
                incoming = ChatMessageIn.model_validate_json(raw)
            except ValidationError:
                await websocket.send_json({"type": "error", "error": "Messaggio non valido"})
                continue

            outgoing = ChatMessageOut(
                author=incoming.author,
                text=incoming.text,
                sent_at=datetime.now(timezone.utc),
            )
            await hub.broadcast(outgoing.model_dump(mode="json", by_alias=True))
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
