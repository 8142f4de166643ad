"""Notification endpoints: clear notifications and stream them over WebSocket."""

from __future__ import annotations

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from src.api.deps import get_hub, get_user_id
from src.api.models import MessageResponse
from src.notifications.hub import NotificationHub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications")

Hub = Annotated[NotificationHub, Depends(get_hub)]


@router.post("/clear/{notification_id}", response_model=MessageResponse)
async def clear_notification(
    notification_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    hub: Hub,
) -> MessageResponse:
    await hub.clear_one(user_id, notification_id)
    return MessageResponse(message="Notification cleared")


@router.post("/clear", response_model=MessageResponse)
async def clear_notifications(user_id: Annotated[str, Depends(get_user_id)], hub: Hub) -> MessageResponse:
    await hub.clear(user_id)
    return MessageResponse(message="All notifications cleared")


@router.websocket("/ws")
async def notifications_ws(ws: WebSocket, hub: Hub) -> None:
    """Stream a user's notifications.

    The user comes from the ``X-User-Id`` header, or the ``user_id`` query
    parameter for browsers that cannot set headers on a WebSocket upgrade.

    Message flow:
    1. Server sends ``{"type": "initialState", "payload": [...]}``
    2. Server pushes each new notification and ``clear`` / ``clear-id`` events
    3. Client may send ``ping`` (answered with ``pong``) or any JSON, which is
       echoed back as ``{"type": "received", "data": ...}``
    """
    user_id = ws.headers.get("x-user-id") or ws.query_params.get("user_id")
    if not user_id:
        await ws.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await ws.accept()
    await hub.connect(user_id, ws)
    try:
        while True:
            msg = await ws.receive_text()
            if msg.strip().lower() == "ping":
                await ws.send_text("pong")
                continue
            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                await ws.send_text(json.dumps({"error": "Invalid message"}))
                continue
            await ws.send_text(json.dumps({"type": "received", "data": data}))
    except WebSocketDisconnect:
        logger.debug("Notification socket closed for %s", user_id)
    finally:
        hub.disconnect(user_id, ws)
