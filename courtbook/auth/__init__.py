"""Auth module - identity provider client and sign-in service"""

from .auth_service import AuthService
from .identity_client import AuthError, IdentityClient

__all__ = ["AuthService", "AuthError", "IdentityClient"]
