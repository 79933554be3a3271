"""
Alert Event Source - insert notifications for the alerts collection.

Firestore snapshot listeners deliver the current contents of the
collection first; that initial snapshot is not a new alert and is
skipped. Afterwards only ADDED changes are forwarded.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional
import logging
import threading
import uuid

from trinetra.config.firebase import get_db
from trinetra.models.alert import Alert
from trinetra.services.alert_service import ALERTS_COLLECTION, parse_alert
from trinetra.utils.firestore_helpers import snapshot_to_dict

logger = logging.getLogger(__name__)

InsertCallback = Callable[[Alert], None]


class AlertEventSource(ABC):
    """
    Subscription interface for alert inserts.

    Callbacks may run on a background thread owned by the backend client.
    """

    @abstractmethod
    def subscribe(self, on_insert: InsertCallback) -> str:
        """Start delivering inserts; returns a subscription token."""

    @abstractmethod
    def unsubscribe(self, token: str) -> None:
        """Stop delivering inserts for token. Unknown tokens are ignored."""


class FirestoreAlertEventSource(AlertEventSource):

    def __init__(self, db=None):
        self._db = db
        self._lock = threading.Lock()
        self._watches: Dict[str, object] = {}

    @property
    def db(self):
        if self._db is None:
            self._db = get_db()
        return self._db

    def subscribe(self, on_insert: InsertCallback) -> str:
        token = uuid.uuid4().hex
        state = {"initial": True}

        def on_snapshot(snapshots, changes, read_time):
            if state["initial"]:
                state["initial"] = False
                return
            for change in changes:
                if change.type.name != "ADDED":
                    continue
                alert = parse_alert(snapshot_to_dict(change.document))
                if alert is None:
                    continue
                try:
                    on_insert(alert)
                except Exception as e:
                    logger.error(f"Alert insert callback failed for {alert.id}: {e}", exc_info=True)

        watch = self.db.collection(ALERTS_COLLECTION).on_snapshot(on_snapshot)
        with self._lock:
            self._watches[token] = watch
        logger.info(f"Subscribed to alert inserts ({token[:8]})")
        return token

    def unsubscribe(self, token: Optional[str]) -> None:
        with self._lock:
            watch = self._watches.pop(token, None) if token else None
        if watch is None:
            return
        try:
            watch.unsubscribe()
        except Exception as e:
            logger.warning(f"Error closing alert listener {token[:8]}: {e}")
        logger.info(f"Unsubscribed from alert inserts ({token[:8]})")
