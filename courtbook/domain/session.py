"""
Auth session domain model for identity token caching.

Keeps the tokens returned by the identity provider in the local cache so a
restarted process can reuse the sign-in instead of prompting again.
"""

import time
from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass
class AuthSession:
    """
    Cached identity provider session.

    Attributes:
        user_id: Identity provider uid
        email: Sign-in email
        id_token: Short-lived identity token
        refresh_token: Long-lived token used to mint a new id_token
        expires_at: Unix timestamp after which id_token is stale
    """

    user_id: str
    email: str
    id_token: str
    refresh_token: str
    expires_at: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthSession":
        """
        Create AuthSession from a cache row.

        Args:
            data: Dictionary with session data

        Returns:
            AuthSession instance
        """
        return cls(
            user_id=data.get("user_id", ""),
            email=data.get("email", ""),
            id_token=data.get("id_token", ""),
            refresh_token=data.get("refresh_token", ""),
            expires_at=float(data.get("expires_at", 0) or 0),
        )

    @classmethod
    def from_identity_response(
        cls, payload: Dict[str, Any], now: Optional[float] = None
    ) -> "AuthSession":
        """
        Build a session from a sign-in or sign-up response.

        The identity toolkit returns "localId", "idToken", "refreshToken" and
        "expiresIn" (seconds, as a string).
        """
        issued_at = time.time() if now is None else now
        return cls(
            user_id=payload.get("localId", ""),
            email=payload.get("email", ""),
            id_token=payload.get("idToken", ""),
            refresh_token=payload.get("refreshToken", ""),
            expires_at=issued_at + float(payload.get("expiresIn", 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "id_token": self.id_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
        }

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True once the id token is past its expiry (with a one-minute margin)."""
        current = time.time() if now is None else now
        return current >= self.expires_at - 60
