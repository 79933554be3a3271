"""
Sighting Service - citizen reports that a missing child was seen.

Any caller may submit, signed in or not. The photo gate is the only
hard requirement and is enforced here as well as on the request model.
"""

from firebase_admin import firestore
from pydantic import ValidationError
from trinetra.config.firebase import get_db
from trinetra.core.exceptions import BackendError, MissingEvidenceError, NotFoundError, ValidationFailed
from trinetra.core.settings import settings
from trinetra.models.profile import SessionContext
from trinetra.models.sighting import Sighting, SightingCreate
from trinetra.services.alert_service import ALERTS_COLLECTION
from trinetra.utils.firestore_helpers import snapshot_to_dict, where_filter
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

SIGHTINGS_COLLECTION = "sightings"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_sighting(data: Optional[Dict]) -> Optional[Sighting]:
    if data is None:
        return None
    try:
        return Sighting(**data)
    except ValidationError as e:
        logger.warning(f"Dropping malformed sighting document {data.get('id')}: {e}")
        return None


class SightingService:

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def submit(self, alert_id: str, fields: SightingCreate, session: Optional[SessionContext] = None) -> Sighting:
        """
        Record a sighting against an existing alert.

        Args:
            alert_id: Alert the sighting refers to
            fields: Sighting form data (photo reference already uploaded)
            session: Caller's session, if signed in

        Returns:
            Sighting: The stored sighting

        Raises:
            MissingEvidenceError: no photo reference (nothing touched in the store)
            ValidationFailed: no location
            NotFoundError: alert does not exist
            BackendError: Firestore failure
        """
        photo_url = getattr(fields, "photo_url", None)
        if not isinstance(photo_url, str) or not photo_url.strip():
            raise MissingEvidenceError("Photo evidence is required to report a sighting")

        location = _blank_to_none(getattr(fields, "location", None))
        if location is None:
            raise ValidationFailed("Location is required")

        try:
            alert_doc = self.db.collection(ALERTS_COLLECTION).document(alert_id).get()
        except Exception as e:
            logger.error(f"Failed to look up alert {alert_id}: {e}", exc_info=True)
            raise BackendError("Failed to submit sighting")
        if not alert_doc.exists:
            raise NotFoundError(f"Alert {alert_id} not found")

        sighting_dict = {
            "alert_id": alert_id,
            "location": location,
            "lat": getattr(fields, "lat", None),
            "lng": getattr(fields, "lng", None),
            "description": _blank_to_none(getattr(fields, "description", None)),
            "reporter_contact": _blank_to_none(getattr(fields, "reporter_contact", None)),
            "reporter_id": session.account_id if session else None,
            "photo_url": photo_url.strip(),
            "created_at": firestore.SERVER_TIMESTAMP,
        }

        doc_ref = self.db.collection(SIGHTINGS_COLLECTION).document()
        try:
            doc_ref.set(sighting_dict)
            created = snapshot_to_dict(doc_ref.get())
        except Exception as e:
            logger.error(f"Failed to save sighting for alert {alert_id}: {e}", exc_info=True)
            raise BackendError("Failed to submit sighting")

        sighting = parse_sighting(created)
        if sighting is None:
            raise BackendError("Sighting was stored but could not be read back")

        logger.info(f"Sighting {sighting.id} recorded for alert {alert_id}")
        return sighting

    def list_by_alert(self, alert_id: str) -> List[Sighting]:
        """Sightings for one alert, newest first."""
        query = where_filter(self.db.collection(SIGHTINGS_COLLECTION), "alert_id", "==", alert_id)
        query = query.order_by("created_at", direction=firestore.Query.DESCENDING)
        return self._run_query(query)

    def list_recent(self, limit: Optional[int] = None) -> List[Sighting]:
        """All sightings newest first, for the authority dashboard."""
        query = self.db.collection(SIGHTINGS_COLLECTION).order_by("created_at", direction=firestore.Query.DESCENDING)
        query = query.limit(limit or settings.RECENT_SIGHTINGS_LIMIT)
        return self._run_query(query)

    def _run_query(self, query) -> List[Sighting]:
        try:
            docs = list(query.stream())
        except Exception as e:
            logger.error(f"Error fetching sightings: {e}", exc_info=True)
            raise BackendError("Failed to load sightings")
        return [s for s in (parse_sighting(snapshot_to_dict(doc)) for doc in docs) if s is not None]


_sighting_service = None


def get_sighting_service() -> SightingService:
    """Get or create SightingService singleton."""
    global _sighting_service
    if _sighting_service is None:
        _sighting_service = SightingService()
    return _sighting_service
