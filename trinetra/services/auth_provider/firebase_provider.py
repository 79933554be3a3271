"""
Firebase Authentication provider.

Account management and token verification go through the Admin SDK.
Password sign-in is not part of the Admin SDK, so it calls the Identity
Toolkit REST endpoint with the project's web API key.
"""

import logging
from typing import Dict, Optional

import requests
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from trinetra.config.firebase import initialize_firebase_app
from trinetra.core.exceptions import AuthenticationFailed, BackendError, ValidationFailed
from .base import AuthProvider, AuthAccount, AuthSession

logger = logging.getLogger(__name__)


class FirebaseAuthProvider(AuthProvider):

    name = "firebase"
    SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

    # Identity Toolkit error codes that mean "wrong credentials"
    CREDENTIAL_ERRORS = (
        "EMAIL_NOT_FOUND",
        "INVALID_PASSWORD",
        "INVALID_LOGIN_CREDENTIALS",
        "INVALID_EMAIL",
        "USER_DISABLED",
    )

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout
        initialize_firebase_app()

    def sign_up(self, email: str, password: str, claims: Optional[Dict] = None) -> AuthAccount:
        try:
            user = auth.create_user(email=email, password=password)
        except auth.EmailAlreadyExistsError:
            raise ValidationFailed("Username is already taken")
        except ValueError as e:
            raise ValidationFailed(f"Invalid sign-up data: {e}")
        except FirebaseError as e:
            logger.error(f"Firebase sign-up failed: {e}", exc_info=True)
            raise BackendError("Sign-up failed. Please try again.")

        if claims:
            try:
                auth.set_custom_user_claims(user.uid, claims)
            except FirebaseError as e:
                logger.warning(f"Failed to set custom claims for {user.uid}: {e}")

        return AuthAccount(uid=user.uid, email=email)

    def sign_in(self, email: str, password: str) -> AuthSession:
        if not self.api_key:
            raise BackendError("FIREBASE_WEB_API_KEY is not configured; password sign-in is unavailable")

        try:
            resp = requests.post(
                self.SIGN_IN_URL,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Identity Toolkit request failed: {e}")
            raise BackendError("Authentication service unreachable")

        if resp.status_code != 200:
            error_code = ""
            try:
                error_code = resp.json().get("error", {}).get("message", "")
            except ValueError:
                pass
            if any(error_code.startswith(code) for code in self.CREDENTIAL_ERRORS):
                raise AuthenticationFailed("Invalid username or password")
            logger.error(f"Identity Toolkit sign-in failed with status {resp.status_code}: {error_code}")
            raise BackendError("Sign-in failed. Please try again.")

        data = resp.json()
        return AuthSession(
            account_id=data["localId"],
            id_token=data["idToken"],
            refresh_token=data.get("refreshToken"),
            expires_in=int(data.get("expiresIn", 3600)),
        )

    def sign_out(self, account_id: str) -> None:
        try:
            auth.revoke_refresh_tokens(account_id)
        except FirebaseError as e:
            logger.error(f"Failed to revoke tokens for {account_id}: {e}")
            raise BackendError("Sign-out failed")

    def delete_account(self, account_id: str) -> None:
        try:
            auth.delete_user(account_id)
        except auth.UserNotFoundError:
            logger.warning(f"Account {account_id} already gone")
        except FirebaseError as e:
            logger.error(f"Failed to delete account {account_id}: {e}")
            raise BackendError("Account cleanup failed")

    def verify_session(self, id_token: str) -> str:
        try:
            decoded = auth.verify_id_token(id_token, check_revoked=True)
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError):
            raise AuthenticationFailed("Session is invalid or expired")
        except (auth.CertificateFetchError, FirebaseError) as e:
            logger.error(f"Token verification failed: {e}")
            raise BackendError("Could not verify session")
        return decoded["uid"]
