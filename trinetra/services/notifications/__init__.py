"""
Notifications - real-time fan-out of newly created alerts.
"""

from .broadcaster import AlertBroadcaster, build_notice, get_alert_broadcaster
from .event_source import AlertEventSource, FirestoreAlertEventSource

__all__ = [
    "AlertBroadcaster",
    "AlertEventSource",
    "FirestoreAlertEventSource",
    "build_notice",
    "get_alert_broadcaster",
]
