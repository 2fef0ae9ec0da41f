"""WebSocket endpoint pushing settlement notifications."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from settlement.interfaces.ws.manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, account_id: Optional[str] = Query(None)):
    client_id = uuid.uuid4().hex
    await manager.connect(client_id, websocket, account_id)
    await manager.send_message(client_id, {"type": "connected", "clientId": client_id, "accountId": account_id})
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Notification client %s closed the socket", client_id)
    finally:
        await manager.disconnect(client_id)
