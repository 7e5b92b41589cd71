"""
Change notification WebSocket

Connect: WS /api/events?token=<jwt>

Server events:
- connected: sent once after the handshake
- projects_changed: {scope, action} after a project is created, completed or deleted
- pong: reply to a client "ping"

Browsers cannot set an Authorization header on a WebSocket handshake, so the
session token travels in the query string. A missing or invalid token closes
the socket with code 4001.
"""

import json
from typing import Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query

from projecthub.core.exceptions import TokenVerificationError
from projecthub.core.logging_config import logger
from projecthub.services.change_notifier import WebSocketNotifier


router = APIRouter(tags=["Events"])

WS_CLOSE_UNAUTHORIZED = 4001
WS_CLOSE_UNAVAILABLE = 4503


@router.websocket("/events")
async def project_events(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    token_service = websocket.app.state.token_service
    notifier = websocket.app.state.notifier

    if not isinstance(notifier, WebSocketNotifier):
        await websocket.close(code=WS_CLOSE_UNAVAILABLE, reason="Change notifications disabled")
        return

    if not token:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason="Access denied, no token provided")
        return

    try:
        user_id = token_service.verify(token)
    except TokenVerificationError as e:
        logger.log_auth_event(event="events_connect", success=False, reason=e.reason)
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason="Invalid or expired token")
        return

    listener = await notifier.connect(websocket, user_id)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await notifier.send_pong(listener)
    except WebSocketDisconnect:
        pass
    finally:
        await notifier.disconnect(listener)
