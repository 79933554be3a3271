"""
Real-time alert feed.

After connecting to /ws/alerts the server pushes:
  {"type": "alert_created", "alert": {...}, "notice": {"title": ..., "description": ...}}

Client can send:
  "ping"                              → {"type": "pong"}
  {"type": "session", "token": "..."} → {"type": "session", "signed_in": ..., "role": ..., "can_manage_alerts": ...}
  {"type": "session", "token": null}  → signs the connection out
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from trinetra.services.account_service import AccountService, get_account_service
from trinetra.services.notifications import AlertBroadcaster, get_alert_broadcaster
from trinetra.services.session_manager import SessionManager
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


def session_state(manager: SessionManager) -> dict:
    profile = manager.profile
    return {
        "type": "session",
        "signed_in": manager.session is not None,
        "role": profile.role.value if profile else None,
        "can_manage_alerts": manager.can_manage_alerts,
    }


@router.websocket("/ws/alerts")
async def alerts_feed(
    ws: WebSocket,
    broadcaster: AlertBroadcaster = Depends(get_alert_broadcaster),
    accounts: AccountService = Depends(get_account_service)
):
    manager = SessionManager(accounts)
    await broadcaster.connect(ws)
    try:
        await manager.start(ws.query_params.get("token"))
        while True:
            data = await ws.receive_text()
            if data == "ping":
                await ws.send_json({"type": "pong"})
                continue
            try:
                message = json.loads(data)
            except ValueError:
                await ws.send_json({"type": "error", "detail": "Unrecognised message"})
                continue
            if isinstance(message, dict) and message.get("type") == "session":
                await manager.on_session_changed(message.get("token"))
                await ws.send_json(session_state(manager))
            else:
                await ws.send_json({"type": "error", "detail": "Unrecognised message"})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(ws)
        manager.close()
