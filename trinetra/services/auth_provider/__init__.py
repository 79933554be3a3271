"""
Authentication provider plugins.

The auth provider owns accounts, passwords and session validity.
Firebase Authentication in production, an in-memory provider in mock mode.
"""

from trinetra.services.auth_provider.base import AuthProvider, AuthAccount, AuthSession
from trinetra.services.auth_provider.registry import get_auth_provider

__all__ = [
    "AuthProvider",
    "AuthAccount",
    "AuthSession",
    "get_auth_provider",
]
