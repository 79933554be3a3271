"""
Alert service - business logic for missing-child alerts.
Handles Firestore CRUD operations for alerts.

DESIGN NOTE:
- Only verified police accounts create or change alerts
- A photo is mandatory: checked here, before any Firestore call, so the
  rule holds even when request validation is bypassed
- Alerts are created active; status changes follow AlertLifecycle
- New alerts reach citizen views through the alerts snapshot listener,
  not through anything this service does
"""

from firebase_admin import firestore
from pydantic import ValidationError
from trinetra.config.firebase import get_db
from trinetra.core.exceptions import BackendError, MissingEvidenceError, NotAuthorized, ValidationFailed
from trinetra.core.settings import settings
from trinetra.models.alert import Alert, AlertCreate, AlertStatus, RiskLevel
from trinetra.models.profile import Profile
from trinetra.services.alert_lifecycle import AlertLifecycle
from trinetra.services.profile_service import can_manage_alerts
from trinetra.utils.firestore_helpers import snapshot_to_dict, where_filter
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

ALERTS_COLLECTION = "alerts"


def parse_alert(data: Optional[Dict]) -> Optional[Alert]:
    """
    Validate a stored alert document into an Alert.
    Malformed documents are logged and dropped.
    """
    if data is None:
        return None
    try:
        return Alert(**data)
    except ValidationError as e:
        logger.warning(f"Dropping malformed alert document {data.get('id')}: {e}")
        return None


def validate_alert_fields(fields: AlertCreate):
    """
    Data-layer validation of an alert submission.

    Raises:
        MissingEvidenceError: no photo reference
        ValidationFailed: any other missing or out-of-range field
    """
    if not (fields.photo_url or "").strip():
        raise MissingEvidenceError("A photo of the child is required to create an alert")

    for field_name, label in (
        ("child_name", "Child name"),
        ("last_seen_location", "Last seen location"),
        ("description", "Description"),
    ):
        value = getattr(fields, field_name, None)
        if not isinstance(value, str) or not value.strip():
            raise ValidationFailed(f"{label} is required")

    if getattr(fields, "time_missing", None) is None:
        raise ValidationFailed("Time missing is required")

    age = getattr(fields, "age", None)
    if not isinstance(age, int) or isinstance(age, bool) or not 0 <= age <= 18:
        raise ValidationFailed("Age must be between 0 and 18")

    try:
        RiskLevel(getattr(fields, "risk_level", None))
    except ValueError:
        raise ValidationFailed("Risk level must be one of: low, medium, high")


class AlertService:
    """
    Service for alert lifecycle management in Firestore.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def create(self, fields: AlertCreate, profile: Optional[Profile]) -> Alert:
        """
        Create a new alert in state active.

        Args:
            fields: Alert form data
            profile: Profile of the calling account

        Returns:
            Alert: The stored alert with generated ID and server timestamps

        Raises:
            NotAuthorized: caller is not a verified police account
            MissingEvidenceError / ValidationFailed: invalid submission (nothing stored)
            BackendError: Firestore write failed
        """
        if not can_manage_alerts(profile):
            raise NotAuthorized("Only verified police accounts can create alerts")

        validate_alert_fields(fields)

        doc_ref = self.db.collection(ALERTS_COLLECTION).document()
        alert_dict = {
            "child_name": fields.child_name,
            "age": fields.age,
            "photo_url": fields.photo_url,
            "last_seen_location": fields.last_seen_location,
            "last_seen_lat": fields.last_seen_lat,
            "last_seen_lng": fields.last_seen_lng,
            "time_missing": fields.time_missing,
            "description": fields.description,
            "risk_level": RiskLevel(fields.risk_level).value,
            "status": AlertLifecycle.INITIAL_STATUS.value,
            "created_by": profile.id,
            "created_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        }

        try:
            doc_ref.set(alert_dict)
            created = snapshot_to_dict(doc_ref.get())
        except Exception as e:
            logger.error(f"Failed to save alert to Firestore: {e}", exc_info=True)
            raise BackendError("Failed to create alert")

        alert = parse_alert(created)
        if alert is None:
            raise BackendError("Alert was stored but could not be read back")

        logger.info(f"Alert created: {alert.id} ({alert.child_name}, risk={alert.risk_level.value})")
        return alert

    def list_active(self) -> List[Alert]:
        """
        All active alerts, newest first. No pagination.
        """
        query = where_filter(self.db.collection(ALERTS_COLLECTION), "status", "==", AlertStatus.ACTIVE.value)
        query = query.order_by("created_at", direction=firestore.Query.DESCENDING)
        return self._run_query(query, "active alerts")

    def list_resolved(self, limit: Optional[int] = None) -> List[Alert]:
        """
        Most recently resolved alerts, by last update, capped at RESOLVED_ALERTS_LIMIT.
        """
        query = where_filter(self.db.collection(ALERTS_COLLECTION), "status", "==", AlertStatus.RESOLVED.value)
        query = query.order_by("updated_at", direction=firestore.Query.DESCENDING)
        query = query.limit(limit or settings.RESOLVED_ALERTS_LIMIT)
        return self._run_query(query, "resolved alerts")

    def get_by_id(self, alert_id: str) -> Optional[Alert]:
        """
        Retrieve a single alert by ID. None when missing or unreadable.
        """
        try:
            doc = self.db.collection(ALERTS_COLLECTION).document(alert_id).get()
        except Exception as e:
            logger.error(f"Error fetching alert {alert_id}: {e}")
            return None
        return parse_alert(snapshot_to_dict(doc))

    def set_status(self, alert_id: str, new_status: str) -> bool:
        """
        Change an alert's status.

        Setting the current status again succeeds (idempotent). Unknown
        alerts, disallowed transitions and Firestore failures are logged
        and reported as False; this method never raises.
        """
        try:
            doc_ref = self.db.collection(ALERTS_COLLECTION).document(alert_id)
            doc = doc_ref.get()
            if not doc.exists:
                logger.warning(f"Status update for unknown alert {alert_id}")
                return False

            current_status = (doc.to_dict() or {}).get("status")
            if not AlertLifecycle.is_valid_transition(current_status, new_status):
                allowed = AlertLifecycle.get_allowed_transitions(current_status)
                logger.warning(
                    f"Invalid status transition for alert {alert_id}: {current_status} → {new_status}. "
                    f"Allowed: {allowed}"
                )
                return False

            doc_ref.update({
                "status": AlertStatus(new_status).value,
                "updated_at": firestore.SERVER_TIMESTAMP,
            })
        except Exception as e:
            logger.error(f"Error updating alert status {alert_id}: {e}", exc_info=True)
            return False

        logger.info(f"✅ Alert {alert_id} status set to {new_status}")
        return True

    def delete(self, alert_id: str) -> bool:
        """
        Hard delete (administrative). No tombstone is kept.
        """
        try:
            doc_ref = self.db.collection(ALERTS_COLLECTION).document(alert_id)
            if not doc_ref.get().exists:
                logger.warning(f"Delete requested for unknown alert {alert_id}")
                return False
            doc_ref.delete()
        except Exception as e:
            logger.error(f"Error deleting alert {alert_id}: {e}", exc_info=True)
            return False

        logger.info(f"Alert deleted: {alert_id}")
        return True

    def _run_query(self, query, label: str) -> List[Alert]:
        try:
            docs = list(query.stream())
        except Exception as e:
            logger.error(f"Error fetching {label}: {e}", exc_info=True)
            raise BackendError(f"Failed to load {label}")

        alerts = []
        for doc in docs:
            alert = parse_alert(snapshot_to_dict(doc))
            if alert is not None:
                alerts.append(alert)
        return alerts


_alert_service = None


def get_alert_service() -> AlertService:
    """Get or create AlertService singleton."""
    global _alert_service
    if _alert_service is None:
        _alert_service = AlertService()
    return _alert_service
