"""
Mock Auth Provider - in-memory accounts for mock DB mode and tests.

Never talks to the network. Passwords are salted PBKDF2 hashes, tokens
are random opaque strings with a fixed lifetime.
"""

import hashlib
import secrets
import threading
import time
import uuid
from typing import Dict, Optional
import logging

from trinetra.core.exceptions import AuthenticationFailed, ValidationFailed
from .base import AuthProvider, AuthAccount, AuthSession

logger = logging.getLogger(__name__)


class MockAuthProvider(AuthProvider):

    name = "mock"
    TOKEN_TTL_SECONDS = 3600
    HASH_ITERATIONS = 100_000

    def __init__(self):
        self._lock = threading.Lock()
        self._accounts: Dict[str, Dict] = {}  # email -> account record
        self._sessions: Dict[str, Dict] = {}  # id token -> {account_id, expires_at}
        logger.info("Mock Auth Provider initialized")

    def _hash(self, password: str, salt: bytes) -> str:
        return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, self.HASH_ITERATIONS).hex()

    def sign_up(self, email: str, password: str, claims: Optional[Dict] = None) -> AuthAccount:
        email = email.lower()
        with self._lock:
            if email in self._accounts:
                raise ValidationFailed("Username is already taken")
            salt = secrets.token_bytes(16)
            uid = uuid.uuid4().hex[:28]
            self._accounts[email] = {
                "uid": uid,
                "salt": salt,
                "password_hash": self._hash(password, salt),
                "claims": dict(claims or {}),
            }
        return AuthAccount(uid=uid, email=email)

    def sign_in(self, email: str, password: str) -> AuthSession:
        account = self._accounts.get(email.lower())
        if account is None or not secrets.compare_digest(
            account["password_hash"], self._hash(password, account["salt"])
        ):
            raise AuthenticationFailed("Invalid username or password")

        id_token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[id_token] = {
                "account_id": account["uid"],
                "expires_at": time.time() + self.TOKEN_TTL_SECONDS,
            }
        return AuthSession(
            account_id=account["uid"],
            id_token=id_token,
            refresh_token=secrets.token_urlsafe(32),
            expires_in=self.TOKEN_TTL_SECONDS,
        )

    def sign_out(self, account_id: str) -> None:
        with self._lock:
            for token in [t for t, s in self._sessions.items() if s["account_id"] == account_id]:
                del self._sessions[token]

    def delete_account(self, account_id: str) -> None:
        with self._lock:
            for email in [e for e, a in self._accounts.items() if a["uid"] == account_id]:
                del self._accounts[email]
            for token in [t for t, s in self._sessions.items() if s["account_id"] == account_id]:
                del self._sessions[token]

    def verify_session(self, id_token: str) -> str:
        session = self._sessions.get(id_token or "")
        if session is None or session["expires_at"] < time.time():
            raise AuthenticationFailed("Session is invalid or expired")
        return session["account_id"]
