"""
Account Service - sign-up, sign-in and police registration.

Police registration is gated by the credential registry: the account is
created only after the claimed police id verifies, and the station name
comes from the registry, never from the registrant.
"""

from trinetra.core.exceptions import BackendError, ValidationFailed, VerificationDenied
from trinetra.core.settings import settings
from trinetra.models.profile import (
    CitizenSignUpRequest, PoliceSignUpRequest, PoliceIdVerification,
    Profile, SessionContext, SignInRequest, UserRole
)
from trinetra.services.auth_provider import AuthProvider, AuthSession, get_auth_provider
from trinetra.services.police_verification import PoliceVerificationService, get_police_verification_service
from trinetra.services.profile_service import ProfileService, get_profile_service
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(
        self,
        auth_provider: Optional[AuthProvider] = None,
        profile_service: Optional[ProfileService] = None,
        verification_service: Optional[PoliceVerificationService] = None
    ):
        self.auth = auth_provider or get_auth_provider()
        self.profiles = profile_service or get_profile_service()
        self.verification = verification_service or get_police_verification_service()

    def email_for(self, username: str) -> str:
        """Usernames are handles; the auth provider needs an email."""
        return f"{username.strip().lower()}@{settings.AUTH_EMAIL_DOMAIN}"

    def _check_password(self, password: str, confirm_password: Optional[str] = None):
        if confirm_password is not None and password != confirm_password:
            raise ValidationFailed("Passwords do not match")
        if len(password) < settings.MIN_PASSWORD_LENGTH:
            raise ValidationFailed(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")

    def _create_profile(self, account_id: str, profile_data: dict) -> Profile:
        """
        Write the profile for a new account, removing the account again if
        the write fails so the same username can sign up on retry.
        """
        try:
            return self.profiles.create_profile(account_id, profile_data)
        except Exception as e:
            logger.error(f"Profile write failed for {account_id}, removing account: {e}")
            self.auth.delete_account(account_id)
            raise BackendError("Sign-up failed. Please try again.")

    def sign_up_citizen(self, request: CitizenSignUpRequest) -> Profile:
        """Create a citizen account and its profile."""
        self._check_password(request.password)

        email = self.email_for(request.username)
        account = self.auth.sign_up(email, request.password, claims={"role": UserRole.CITIZEN.value})

        profile = self._create_profile(account.uid, {
            "username": request.username.strip().lower(),
            "email": email,
            "role": UserRole.CITIZEN.value,
            "verified": False,
        })
        logger.info(f"Citizen account created: {account.uid}")
        return profile

    def verify_police_id(self, police_id: str) -> PoliceIdVerification:
        return self.verification.verify(police_id)

    def sign_up_police(self, request: PoliceSignUpRequest) -> Profile:
        """
        Register a police account.

        Flow:
        1. Validate passwords (no network call)
        2. Verify the claimed police id against the registry
        3. Create the auth account
        4. Create the profile with the registry's station bound in

        Raises:
            ValidationFailed: password problems
            VerificationDenied: credential not valid (carries the verification result)
        """
        self._check_password(request.password, request.confirm_password)

        verification = self.verification.verify(request.police_id)
        if not (verification.is_valid and verification.station_name):
            logger.warning(f"Police registration denied for claimed id {request.police_id}")
            raise VerificationDenied(
                "Invalid Police ID - Access Denied",
                payload={"verification": verification.model_dump()}
            )

        email = self.email_for(request.username)
        account = self.auth.sign_up(email, request.password, claims={"role": UserRole.POLICE.value})

        profile = self._create_profile(account.uid, {
            "username": request.username.strip().lower(),
            "email": email,
            "role": UserRole.POLICE.value,
            "full_name": request.full_name.strip(),
            "official_email": request.official_email.strip(),
            "police_id": request.police_id.strip(),
            "police_station": verification.station_name,
            "id_proof_url": request.id_proof_url or None,
            "verified": True,
        })
        logger.info(f"Police account created: {account.uid} (station={verification.station_name})")
        return profile

    def sign_in(self, request: SignInRequest) -> Tuple[AuthSession, Optional[Profile]]:
        session = self.auth.sign_in(self.email_for(request.username), request.password)
        profile = self.profiles.resolve_profile(session.account_id)
        logger.info(f"User signed in: {session.account_id}")
        return session, profile

    def sign_out(self, account_id: str) -> None:
        self.auth.sign_out(account_id)
        logger.info(f"User signed out: {account_id}")

    def resolve_session(self, id_token: str) -> SessionContext:
        """
        Turn a bearer token into an explicit session context.

        Raises AuthenticationFailed for invalid tokens. The profile may still
        be None (lookup failed soft); callers gate on it.
        """
        account_id = self.auth.verify_session(id_token)
        return SessionContext(account_id=account_id, profile=self.profiles.resolve_profile(account_id))


_account_service = None


def get_account_service() -> AccountService:
    """Get or create AccountService singleton."""
    global _account_service
    if _account_service is None:
        _account_service = AccountService()
    return _account_service
