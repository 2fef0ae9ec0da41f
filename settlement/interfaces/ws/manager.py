"""Connection manager for settlement notification websocket clients."""
import json
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationManager:
    """Fans settlement notifications out to connected websocket clients.

    A client may follow a single account; clients without an account
    receive every notification.
    """

    def __init__(self) -> None:
        self.connections: Dict[str, WebSocket] = {}
        self.subscriptions: Dict[str, Optional[str]] = {}

    async def connect(self, client_id: str, websocket: WebSocket, account_id: Optional[str] = None) -> None:
        await websocket.accept()
        self.register(client_id, websocket, account_id)

    def register(self, client_id: str, websocket: WebSocket, account_id: Optional[str] = None) -> None:
        self.connections[client_id] = websocket
        self.subscriptions[client_id] = account_id
        logger.info("Notification client %s connected (account=%s)", client_id, account_id or "*")

    async def disconnect(self, client_id: str) -> None:
        self.connections.pop(client_id, None)
        self.subscriptions.pop(client_id, None)
        logger.info("Notification client %s disconnected", client_id)

    async def send_message(self, client_id: str, message: dict) -> bool:
        websocket = self.connections.get(client_id)
        if websocket is None:
            logger.warning("Notification client %s is not connected", client_id)
            return False
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Sending to notification client %s failed: %s", client_id, exc)
            await self.disconnect(client_id)
            return False

    async def notify(self, payload: dict[str, Any]) -> None:
        account_id = payload.get("accountId")
        message = {"type": "transaction", "data": payload}
        for client_id, followed in list(self.subscriptions.items()):
            if followed is None or followed == account_id:
                await self.send_message(client_id, message)

    def get_online_count(self) -> int:
        return len(self.connections)


manager = NotificationManager()
