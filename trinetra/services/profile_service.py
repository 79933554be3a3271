"""
Profile Service - role and verification metadata bound to an account.
"""

from firebase_admin import firestore
from pydantic import ValidationError
from trinetra.config.firebase import get_db
from trinetra.models.profile import Profile, UserRole
from trinetra.utils.firestore_helpers import snapshot_to_dict
from typing import Optional, Dict
import logging

logger = logging.getLogger(__name__)

PROFILES_COLLECTION = "profiles"


def can_manage_alerts(profile: Optional[Profile]) -> bool:
    """
    Authority gate for every alert-mutating operation.

    Only verified police accounts pass. An absent profile never does.
    """
    return profile is not None and profile.role == UserRole.POLICE and profile.verified


class ProfileService:
    """
    Service for profile documents in Firestore (profiles/{account_id}).
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def resolve_profile(self, account_id: Optional[str]) -> Optional[Profile]:
        """
        Resolve the profile for an account.

        Fails soft: lookup errors and malformed documents are logged and
        reported as None. Callers treat None as "not authorized for
        role-specific actions".
        """
        if not account_id:
            return None

        try:
            doc = self.db.collection(PROFILES_COLLECTION).document(account_id).get()
            data = snapshot_to_dict(doc)
        except Exception as e:
            logger.error(f"Failed to fetch profile {account_id}: {str(e)}")
            return None

        if data is None:
            return None

        try:
            return Profile(**data)
        except ValidationError as e:
            logger.warning(f"Malformed profile document {account_id}: {e}")
            return None

    def create_profile(self, account_id: str, profile_data: Dict) -> Profile:
        """
        Create the profile document for a freshly signed-up account.

        Args:
            account_id: Auth provider uid (also the document ID)
            profile_data: Profile fields without id/timestamps

        Returns:
            The stored Profile with server timestamps resolved
        """
        try:
            profile_ref = self.db.collection(PROFILES_COLLECTION).document(account_id)
            profile_ref.set({
                **profile_data,
                "created_at": firestore.SERVER_TIMESTAMP,
                "updated_at": firestore.SERVER_TIMESTAMP,
            })

            created = snapshot_to_dict(profile_ref.get())
            logger.info(f"Profile created: {account_id} (role={profile_data.get('role')})")
            return Profile(**created)

        except Exception as e:
            logger.error(f"Failed to create profile: {str(e)}", exc_info=True)
            raise


# Global service instance (singleton pattern)
_profile_service = None


def get_profile_service() -> ProfileService:
    """
    Get or create ProfileService singleton instance.

    Returns:
        ProfileService: The global profile service instance
    """
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service
