"""
Authentication service.

Signs users in through the identity provider, loads or writes their profile
in the remote users table, and caches the session tokens locally so
get_current_user() works after a restart.
"""

from typing import Optional

from courtbook.auth.identity_client import AuthError, IdentityClient
from courtbook.database.exceptions import NotFoundError
from courtbook.domain.session import AuthSession
from courtbook.domain.user import User
from courtbook.utils.logger import get_logger, mask_email

logger = get_logger(__name__)


class AuthService:
    """
    Args:
        identity_client: IdentityClient for the provider calls
        user_repo: UserRepository holding profiles
        local_cache: Optional LocalDataService for session reuse
    """

    def __init__(self, identity_client: IdentityClient, user_repo, local_cache=None):
        self.identity_client = identity_client
        self.user_repo = user_repo
        self.local_cache = local_cache
        self._current_user: Optional[User] = None

    def login(self, email: str, password: str) -> User:
        """
        Sign in and load the stored profile.

        Raises:
            AuthError: On blank input or provider rejection
            NotFoundError: If the account has no profile document
        """
        if not email or not email.strip() or not password or not password.strip():
            raise AuthError("Email and password must be provided.")

        payload = self.identity_client.sign_in_with_password(email.strip(), password)
        session = AuthSession.from_identity_response(payload)

        profile = self.user_repo.get_user(session.user_id)
        if profile is None:
            logger.error(
                "Signed in but no profile found",
                operation="login",
                context={"user_id": session.user_id},
            )
            raise NotFoundError("User profile not found in database.")

        profile.id_token = session.id_token
        self._remember(profile, session)
        logger.info(
            "User signed in",
            operation="login",
            context={"user_id": profile.id, "email_masked": mask_email(profile.email)},
        )
        return profile

    def sign_up(self, email: str, password: str, name: str, student_id: str) -> User:
        """
        Create an account and its profile document.

        Raises:
            AuthError: On blank input or provider rejection
        """
        fields = (email, password, name, student_id)
        if any(value is None or not str(value).strip() for value in fields):
            raise AuthError("All fields must be provided.")

        payload = self.identity_client.sign_up(email.strip(), password)
        session = AuthSession.from_identity_response(payload)

        user = User(
            id=session.user_id,
            email=email.strip(),
            name=name.strip(),
            student_id=student_id.strip(),
        )
        self.user_repo.save_user(user)

        user.id_token = session.id_token
        self._remember(user, session)
        logger.info(
            "User signed up",
            operation="sign_up",
            context={"user_id": user.id, "email_masked": mask_email(user.email)},
        )
        return user

    def logout(self) -> None:
        """Forget the current user and the cached session."""
        user_id = self._current_user.id if self._current_user else None
        self._current_user = None
        if self.local_cache is not None:
            self.local_cache.clear_session()
        logger.info("User signed out", operation="logout", context={"user_id": user_id})

    def get_current_user(self) -> Optional[User]:
        """
        The signed-in user, restoring a cached session if needed.

        An expired cached session is refreshed once; a failed refresh or a
        missing profile clears the cache and returns None.
        """
        if self._current_user is not None:
            return self._current_user

        if self.local_cache is None:
            return None

        session = self.local_cache.get_session()
        if session is None:
            return None

        try:
            if session.is_expired():
                refreshed = AuthSession.from_identity_response(
                    self.identity_client.refresh(session.refresh_token)
                )
                refreshed.email = session.email
                session = refreshed
                self.local_cache.save_session(session)

            profile = self.user_repo.get_user(session.user_id)
        except AuthError as e:
            logger.warning("Cached session could not be refreshed", operation="restore_session", error=str(e))
            self.local_cache.clear_session()
            return None

        if profile is None:
            self.local_cache.clear_session()
            return None

        profile.id_token = session.id_token
        self._current_user = profile
        return profile

    def _remember(self, user: User, session: AuthSession) -> None:
        self._current_user = user
        if self.local_cache is not None:
            self.local_cache.save_session(session)
