"""
Alert Broadcaster - pushes new alerts to every connected WebSocket.

One subscription on the event source lives for the whole application
(opened on startup, closed on shutdown). Listener callbacks arrive on a
backend thread and are handed to the event loop before touching sockets.
Late joiners get nothing replayed.
"""

from typing import Dict, Optional, Set
import asyncio
import logging

from fastapi import WebSocket

from trinetra.models.alert import Alert
from trinetra.services.notifications.event_source import AlertEventSource, FirestoreAlertEventSource

logger = logging.getLogger(__name__)

NOTICE_TITLE = "New alert received!"


def build_notice(alert: Alert) -> Dict[str, str]:
    return {
        "title": NOTICE_TITLE,
        "description": f"Missing: {alert.child_name}, Age {alert.age}",
    }


def build_payload(alert: Alert) -> Dict:
    return {
        "type": "alert_created",
        "alert": alert.model_dump(mode="json"),
        "notice": build_notice(alert),
    }


class AlertBroadcaster:
    """WebSocket connection manager for the alert feed."""

    def __init__(self, event_source: Optional[AlertEventSource] = None):
        self.event_source = event_source
        self.active: Set[WebSocket] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._token: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._token is not None

    def start(self, loop: asyncio.AbstractEventLoop):
        """Subscribe to alert inserts; deliveries are scheduled on loop."""
        if self._token is not None:
            return
        if self.event_source is None:
            self.event_source = FirestoreAlertEventSource()
        self._loop = loop
        self._token = self.event_source.subscribe(self._on_insert)

    def stop(self):
        if self._token is None:
            return
        self.event_source.unsubscribe(self._token)
        self._token = None
        self._loop = None

    def _on_insert(self, alert: Alert):
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug(f"Dropping alert {alert.id}: broadcaster not running")
            return
        asyncio.run_coroutine_threadsafe(self.broadcast(build_payload(alert)), loop)

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.active.add(ws)
        logger.debug(f"Alert feed client connected ({len(self.active)} active)")

    def disconnect(self, ws: WebSocket):
        self.active.discard(ws)

    async def broadcast(self, payload: Dict):
        dead: Set[WebSocket] = set()
        for ws in list(self.active):
            try:
                await ws.send_json(payload)
            except Exception:
                dead.add(ws)
        self.active -= dead
        if dead:
            logger.debug(f"Pruned {len(dead)} closed alert feed connections")


_alert_broadcaster = None


def get_alert_broadcaster() -> AlertBroadcaster:
    """Get or create AlertBroadcaster singleton."""
    global _alert_broadcaster
    if _alert_broadcaster is None:
        _alert_broadcaster = AlertBroadcaster()
    return _alert_broadcaster
