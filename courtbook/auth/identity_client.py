"""
Identity provider REST client.

Talks to the identity toolkit accounts API (email/password sign-in, sign-up)
and the secure token endpoint (refresh) with a plain requests.Session.
"""

from typing import Any, Dict, Optional

import requests

from courtbook.utils.logger import get_logger, mask_email

logger = get_logger(__name__)


class AuthError(RuntimeError):
    """Raised when sign-in, sign-up or token refresh fails."""

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


# Provider error codes mapped to messages fit for an alert dialog
_FRIENDLY_ERRORS = {
    "EMAIL_NOT_FOUND": "No account exists for this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Incorrect email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "EMAIL_EXISTS": "An account already exists for this email.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
    "TOKEN_EXPIRED": "Your session has expired. Please sign in again.",
    "INVALID_REFRESH_TOKEN": "Your session has expired. Please sign in again.",
}


class IdentityClient:
    """
    Client for the identity toolkit REST API.

    Attributes:
        api_key: Web API key of the identity project
        http_client: requests-like session (injectable for tests)
        timeout: Request timeout in seconds
    """

    ACCOUNTS_URL = "https://identitytoolkit.googleapis.com/v1/accounts"
    TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

    def __init__(
        self,
        api_key: str,
        http_client: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        if not api_key:
            raise AuthError("Identity API key is not configured.")
        self.api_key = api_key
        self.http_client = http_client or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in an existing account.

        Returns:
            Response payload with localId, email, idToken, refreshToken, expiresIn
        """
        return self._post_accounts(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
            email,
        )

    def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        """Create an account; same payload shape as sign-in."""
        return self._post_accounts(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
            email,
        )

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new id token.

        The token endpoint answers in snake_case; the result is normalized to
        the accounts API shape (localId, idToken, refreshToken, expiresIn).
        """
        payload = self._post(
            self.TOKEN_URL,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            operation="refresh_token",
            context={},
        )
        return {
            "localId": payload.get("user_id", ""),
            "idToken": payload.get("id_token", ""),
            "refreshToken": payload.get("refresh_token", refresh_token),
            "expiresIn": payload.get("expires_in", "3600"),
        }

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _post_accounts(self, method: str, body: Dict[str, Any], email: str) -> Dict[str, Any]:
        return self._post(
            f"{self.ACCOUNTS_URL}:{method}",
            json_body=body,
            operation=method,
            context={"email_masked": mask_email(email)},
        )

    def _post(
        self,
        url: str,
        operation: str,
        context: Dict[str, Any],
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = self.http_client.post(
                url,
                params={"key": self.api_key},
                json=json_body,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Identity request failed", operation=operation, context=context, error=str(e))
            raise AuthError("Could not reach the sign-in service. Check your connection.") from e

        if response.status_code >= 400:
            code = _error_code(response)
            logger.warning(
                "Identity provider rejected request",
                operation=operation,
                context={**context, "status_code": response.status_code},
                error=code,
            )
            raise AuthError(
                _FRIENDLY_ERRORS.get(code or "", f"Authentication failed ({code or response.status_code})."),
                code=code,
                status_code=response.status_code,
            )

        logger.info("Identity request succeeded", operation=operation, context=context)
        return response.json()


def _error_code(response: requests.Response) -> Optional[str]:
    """
    Extract the provider error code, e.g. "EMAIL_NOT_FOUND".

    Messages may carry a suffix: "WEAK_PASSWORD : Password should be ...".
    """
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        return None
    if not message:
        return None
    return message.split(":", 1)[0].strip()
