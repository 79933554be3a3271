"""
Request dependencies: session resolution and authority checks.

The session is rebuilt from the bearer token on every request and
passed to handlers as a parameter.
"""

from fastapi import Depends, Header
from trinetra.core.exceptions import AuthenticationFailed, NotAuthorized
from trinetra.models.profile import SessionContext
from trinetra.services.account_service import AccountService, get_account_service
from trinetra.services.profile_service import can_manage_alerts
from typing import Optional


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationFailed("Authorization header must be 'Bearer <token>'")
    return token.strip()


def get_optional_session(
    authorization: Optional[str] = Header(None, description="Bearer <id token>"),
    accounts: AccountService = Depends(get_account_service)
) -> Optional[SessionContext]:
    """Session if a token was sent; an invalid token is still a 401."""
    token = bearer_token(authorization)
    if token is None:
        return None
    return accounts.resolve_session(token)


def require_session(session: Optional[SessionContext] = Depends(get_optional_session)) -> SessionContext:
    if session is None:
        raise AuthenticationFailed("Sign in required")
    return session


def require_authority(session: SessionContext = Depends(require_session)) -> SessionContext:
    """Only verified police accounts pass."""
    if not can_manage_alerts(session.profile):
        raise NotAuthorized("Verified police account required")
    return session
