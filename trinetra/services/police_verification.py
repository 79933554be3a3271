"""
Police Identity Verification - credential registry lookup.

The registry (police_ids collection) is read-only from this service's
point of view. Any doubt resolves to "not valid".
"""

from trinetra.config.firebase import get_db
from trinetra.models.profile import PoliceIdVerification
from trinetra.utils.firestore_helpers import where_filter
import logging

logger = logging.getLogger(__name__)

REGISTRY_COLLECTION = "police_ids"


class PoliceVerificationService:
    """
    Looks claimed police ids up in the credential registry.

    A claimed id may be registered by more than one account; uniqueness is
    not enforced here.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def verify(self, claimed_id: str) -> PoliceIdVerification:
        """
        Verify a claimed police id.

        Args:
            claimed_id: Police id as typed by the registrant

        Returns:
            PoliceIdVerification; is_valid=False with no station on registry
            error or when the id is not registered
        """
        claimed_id = (claimed_id or "").strip()
        if not claimed_id:
            return PoliceIdVerification()

        try:
            registry_ref = self.db.collection(REGISTRY_COLLECTION)
            query = where_filter(registry_ref, "police_id", "==", claimed_id).limit(1)
            docs = list(query.stream())
        except Exception as e:
            logger.error(f"Error verifying police ID {claimed_id}: {str(e)}")
            return PoliceIdVerification()

        if not docs:
            logger.info(f"Police ID not found in registry: {claimed_id}")
            return PoliceIdVerification()

        entry = docs[0].to_dict() or {}
        result = PoliceIdVerification(
            is_valid=entry.get("is_valid") is True,
            station_name=entry.get("station_name") or None,
        )
        logger.info(f"Police ID {claimed_id} verification: valid={result.is_valid}")
        return result


_verification_service = None


def get_police_verification_service() -> PoliceVerificationService:
    """Get or create PoliceVerificationService singleton."""
    global _verification_service
    if _verification_service is None:
        _verification_service = PoliceVerificationService()
    return _verification_service
