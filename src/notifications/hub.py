"""Per-user notification channel with WebSocket fan-out.

Notifications are kept in memory until the user clears them, so a client
that connects later still receives everything pending in its initial state.
Delivery is best effort: a socket that fails to receive is dropped.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationHub:
    """In-process notification store and broadcaster, keyed by user id.

    Data structure:
    - _notifications: user_id -> {notification_id: event}
    - _sockets: user_id -> set(WebSocket)
    """

    def __init__(self) -> None:
        self._notifications: dict[str, dict[str, dict[str, Any]]] = {}
        self._sockets: dict[str, set[WebSocket]] = {}

    # -------- subscribe / unsubscribe (router accepts the socket) --------
    async def connect(self, user_id: str, ws: WebSocket) -> None:
        """Register an accepted socket and send it the pending notifications."""
        self._sockets.setdefault(user_id, set()).add(ws)
        await ws.send_text(
            json.dumps({"type": "initialState", "payload": self.notifications(user_id)})
        )

    def disconnect(self, user_id: str, ws: WebSocket) -> None:
        self._sockets.get(user_id, set()).discard(ws)

    # -------- state --------
    def notifications(self, user_id: str) -> list[dict[str, Any]]:
        return list(self._notifications.get(user_id, {}).values())

    async def publish(self, user_id: str, event: dict[str, Any]) -> None:
        """Store *event* for the user and push it to their open sockets."""
        event_id = str(event.get("id", ""))
        self._notifications.setdefault(user_id, {})[event_id] = event
        await self._broadcast(user_id, event)

    async def clear(self, user_id: str) -> None:
        self._notifications.pop(user_id, None)
        await self._broadcast(user_id, {"type": "clear"})

    async def clear_one(self, user_id: str, notification_id: str) -> bool:
        """Remove one notification. Returns False if it did not exist."""
        removed = self._notifications.get(user_id, {}).pop(notification_id, None)
        await self._broadcast(user_id, {"type": "clear-id", "payload": notification_id})
        return removed is not None

    async def _broadcast(self, user_id: str, payload: dict[str, Any]) -> None:
        msg = json.dumps(payload)
        for ws in list(self._sockets.get(user_id, set())):
            try:
                await ws.send_text(msg)
            except Exception as exc:
                # Connection is gone; stop delivering to it.
                logger.debug("Dropping notification socket for %s: %s", user_id, exc)
                self.disconnect(user_id, ws)


# Global hub instance shared by the API routes and the transcription worker.
hub = NotificationHub()
