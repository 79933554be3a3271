"""
Auth Provider Registry - selects the configured provider once per process.
"""

from typing import Optional
import logging

from trinetra.core.settings import settings
from .base import AuthProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[AuthProvider] = None


def get_auth_provider() -> AuthProvider:
    """
    Resolve the active auth provider based on settings.

    Rules:
    - AUTH_PROVIDER='mock' (or unset with USE_MOCK_DB=true): in-memory provider
    - otherwise: Firebase Authentication
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    if settings.auth_provider_name == "mock":
        from .mock_provider import MockAuthProvider
        _provider_instance = MockAuthProvider()
    else:
        from .firebase_provider import FirebaseAuthProvider
        _provider_instance = FirebaseAuthProvider(
            api_key=settings.FIREBASE_WEB_API_KEY,
            timeout=settings.AUTH_TIMEOUT_SECONDS,
        )

    logger.info(f"Auth provider initialized: {_provider_instance.name}")
    return _provider_instance
