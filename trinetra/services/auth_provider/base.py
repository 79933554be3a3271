"""
Auth Provider Base Interface.

Defines the contract for authentication providers.
All auth providers must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class AuthAccount:
    """An account as created by the provider."""

    def __init__(self, uid: str, email: str):
        self.uid = uid
        self.email = email


class AuthSession:
    """
    A signed-in session.

    id_token is what clients send back as the bearer token.
    """

    def __init__(
        self,
        account_id: str,
        id_token: str,
        refresh_token: Optional[str] = None,
        expires_in: Optional[int] = None
    ):
        self.account_id = account_id
        self.id_token = id_token
        self.refresh_token = refresh_token
        self.expires_in = expires_in


class AuthProvider(ABC):
    """
    Contract:
    - sign_up raises ValidationFailed for a taken handle, BackendError otherwise
    - sign_in / verify_session raise AuthenticationFailed for bad credentials
      or tokens, BackendError when the provider is unreachable
    - sign_out invalidates every outstanding session of the account
    - delete_account raises BackendError when the provider refuses
    """

    name: str = "base"

    @abstractmethod
    def sign_up(self, email: str, password: str, claims: Optional[Dict] = None) -> AuthAccount:
        raise NotImplementedError

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    @abstractmethod
    def sign_out(self, account_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_account(self, account_id: str) -> None:
        """Remove an account. Deleting an unknown account is a no-op."""
        raise NotImplementedError

    @abstractmethod
    def verify_session(self, id_token: str) -> str:
        """Return the account id the token belongs to."""
        raise NotImplementedError
