"""
Change Notifier

Best-effort fan-out of "projects changed" hints to connected UI clients so
they can refetch. There is no delivery guarantee, no backpressure and no replay
of missed events: a listener that has gone away is dropped silently.

The project service only knows the ChangeNotifier interface; the WebSocket
transport lives in WebSocketNotifier and a NullNotifier is available for pure
API use.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

from projecthub.core.logging_config import logger

PROJECTS_SCOPE = "projects"


class EventType(str, Enum):
    """WebSocket event types"""
    CONNECTED = "connected"
    PROJECTS_CHANGED = "projects_changed"
    PONG = "pong"
    ERROR = "error"


class ChangeAction(str, Enum):
    CREATED = "created"
    COMPLETED = "completed"
    DELETED = "deleted"


class ChangeNotifier:
    """Publish side of the change channel"""

    def notify_changed(self, scope: str, action: Optional[ChangeAction] = None) -> None:
        raise NotImplementedError


class NullNotifier(ChangeNotifier):
    """Drops every notification"""

    def notify_changed(self, scope: str, action: Optional[ChangeAction] = None) -> None:
        return None


@dataclass(eq=False)
class Listener:
    """A connected WebSocket client"""
    websocket: WebSocket
    user_id: str
    connected_at: datetime = field(default_factory=datetime.utcnow)


class WebSocketNotifier(ChangeNotifier):
    """
    Keeps the set of connected listeners and broadcasts to all of them.

    notify_changed() only schedules the broadcast on the running loop and
    returns immediately, so the HTTP response never waits for delivery.
    """

    def __init__(self):
        self._listeners: Set[Listener] = set()
        self._lock = asyncio.Lock()
        # Strong references so scheduled broadcasts are not garbage collected
        self._pending: Set[asyncio.Task] = set()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def connect(self, websocket: WebSocket, user_id: str) -> Listener:
        await websocket.accept()
        listener = Listener(websocket=websocket, user_id=user_id)
        async with self._lock:
            self._listeners.add(listener)

        logger.info(f"Change listener connected for user {user_id} ({self.listener_count} total)")
        await self._send(listener, EventType.CONNECTED, {"scope": PROJECTS_SCOPE})
        return listener

    async def disconnect(self, listener: Listener) -> None:
        async with self._lock:
            self._listeners.discard(listener)
        logger.info(f"Change listener disconnected for user {listener.user_id}")

    async def send_pong(self, listener: Listener) -> None:
        await self._send(listener, EventType.PONG, {})

    def notify_changed(self, scope: str, action: Optional[ChangeAction] = None) -> None:
        if not self._listeners:
            return
        data: Dict[str, Any] = {"scope": scope}
        if action is not None:
            data["action"] = action.value
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, dropping change notification")
            return
        task = loop.create_task(self.broadcast(EventType.PROJECTS_CHANGED, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def broadcast(self, event_type: EventType, data: Dict[str, Any]) -> int:
        """Send an event to every listener; returns how many sends succeeded"""
        async with self._lock:
            listeners = list(self._listeners)

        delivered = 0
        dead = []
        for listener in listeners:
            if await self._send(listener, event_type, data):
                delivered += 1
            else:
                dead.append(listener)

        if dead:
            async with self._lock:
                for listener in dead:
                    self._listeners.discard(listener)
            logger.debug(f"Dropped {len(dead)} dead change listener(s)")

        return delivered

    async def wait_pending(self) -> None:
        """Wait for scheduled broadcasts to finish (used at shutdown and in tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _send(self, listener: Listener, event_type: EventType, data: Dict[str, Any]) -> bool:
        message = {
            "type": event_type.value,
            "data": data,
            "timestamp": datetime.utcnow().isoformat()
        }
        try:
            await listener.websocket.send_json(message)
            return True
        except Exception as e:
            logger.debug(f"Error sending to listener of user {listener.user_id}: {e}")
            return False
