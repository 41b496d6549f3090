# =============================================================================
# shoply_core/auth/authentication.py
# Account Operations against Supabase Auth
# =============================================================================
"""
Sign-up, sign-in, sign-out, password reset and the identity stream.

Every failure from the auth service is normalised to an ``auth/...`` code and
raised as ``AuthError`` whose message comes from AUTH_ERROR_MESSAGES, so forms
can show it as-is.

Usage:
    auth = AuthService(client.auth, data, config)
    identity = await auth.sign_in("ada@example.com", "S3cret!pw")
    unsubscribe = auth.on_auth_state_change(lambda identity: ...)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from shoply_core.config import AppConfig
from shoply_core.errors import AuthError
from shoply_core.logging import get_logger

if TYPE_CHECKING:
    from shoply_core.services.database import ShoplyData

logger = get_logger(__name__)

DEFAULT_AUTH_ERROR_MESSAGE = "An error occurred. Please try again."

AUTH_ERROR_MESSAGES: Dict[str, str] = {
    "auth/email-already-in-use": "This email is already registered. Please sign in or use a different email.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/operation-not-allowed": "Email/password accounts are not enabled. Please contact support.",
    "auth/weak-password": "Please choose a stronger password. It should be at least 6 characters long.",
    "auth/user-disabled": "This account has been disabled. Please contact support.",
    "auth/user-not-found": "Invalid email or password.",
    "auth/wrong-password": "Invalid email or password.",
    "auth/too-many-requests": "Too many unsuccessful login attempts. Please try again later.",
}

# Supabase Auth error codes -> auth/... codes
SUPABASE_ERROR_CODES: Dict[str, str] = {
    "user_already_exists": "auth/email-already-in-use",
    "email_exists": "auth/email-already-in-use",
    "email_address_invalid": "auth/invalid-email",
    "email_provider_disabled": "auth/operation-not-allowed",
    "signup_disabled": "auth/operation-not-allowed",
    "weak_password": "auth/weak-password",
    "user_banned": "auth/user-disabled",
    "user_not_found": "auth/user-not-found",
    "invalid_credentials": "auth/wrong-password",
    "over_request_rate_limit": "auth/too-many-requests",
    "over_email_send_rate_limit": "auth/too-many-requests",
}

UNKNOWN_AUTH_CODE = "auth/unknown"


def normalize_auth_code(code: Optional[str]) -> str:
    if not code:
        return UNKNOWN_AUTH_CODE
    if code.startswith("auth/"):
        return code
    return SUPABASE_ERROR_CODES.get(code, f"auth/{code.replace('_', '-')}")


def get_error_message(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(code, DEFAULT_AUTH_ERROR_MESSAGE)


def format_auth_error(error: Exception) -> AuthError:
    """Turn any auth-service exception into a coded AuthError."""
    if isinstance(error, AuthError):
        return error
    code = normalize_auth_code(getattr(error, "code", None))
    return AuthError(code, get_error_message(code), details={"cause": str(error)})


# =============================================================================
# IDENTITY
# =============================================================================

class Identity(ABC):
    """Externally authenticated principal."""

    id: str
    email: str

    @abstractmethod
    async def get_id_token(self, force_refresh: bool = False) -> str:
        """Short-lived access token; ``force_refresh`` asks the service for a new one."""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Identity) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, email={self.email!r})"


class SupabaseIdentity(Identity):
    """
    Identity backed by a Supabase user.

    Keeps the refresh token of the session it came from, so a forced refresh
    still works after the client dropped its session (the sign-out that
    follows idle expiry).
    """

    def __init__(self, auth_client: Any, user: Any, refresh_token: Optional[str] = None):
        self._auth = auth_client
        self._refresh_token = refresh_token
        self.id = str(user.id)
        self.email = user.email or ""

    async def get_id_token(self, force_refresh: bool = False) -> str:
        try:
            if force_refresh:
                response = await self._auth.refresh_session(self._refresh_token)
                session = response.session
            else:
                session = await self._auth.get_session()
        except Exception as e:
            raise format_auth_error(e) from e

        if session is None:
            raise AuthError("auth/no-session", DEFAULT_AUTH_ERROR_MESSAGE)
        self._refresh_token = getattr(session, "refresh_token", None) or self._refresh_token
        return session.access_token


# =============================================================================
# AUTH SERVICE
# =============================================================================

IdentityCallback = Callable[[Optional[Identity]], None]


class AuthService:
    """
    Account operations on Supabase Auth.

    ``auth_client`` is the ``auth`` attribute of a supabase AsyncClient.
    """

    def __init__(self, auth_client: Any, data: "ShoplyData", config: AppConfig):
        self._auth = auth_client
        self.data = data
        self.config = config

    def _identity(self, user: Any, session: Any = None) -> Optional[Identity]:
        if user is None:
            return None
        return SupabaseIdentity(self._auth, user, getattr(session, "refresh_token", None))

    async def sign_up(self, email: str, password: str, name: str) -> Identity:
        """
        Create an account and its user profile.

        Raises:
            AuthError: coded failure from the auth service
            RemoteWriteError: if the profile could not be written
        """
        try:
            response = await self._auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name}},
            })
        except Exception as e:
            raise format_auth_error(e) from e

        user = response.user
        # With email confirmation on, an existing address comes back as a
        # user without identities instead of an error
        if user is None or getattr(user, "identities", None) == []:
            code = "auth/email-already-in-use"
            raise AuthError(code, get_error_message(code))

        identity = self._identity(user, response.session)
        await self.data.create_user(identity.id, {"email": email, "name": name})
        logger.info(f"Account created for {identity.id}")
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = await self._auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except Exception as e:
            raise format_auth_error(e) from e

        if response.user is None:
            code = "auth/user-not-found"
            raise AuthError(code, get_error_message(code))
        return self._identity(response.user, response.session)

    async def sign_out(self) -> None:
        try:
            await self._auth.sign_out()
        except Exception as e:
            raise format_auth_error(e) from e

    async def reset_password(self, email: str) -> None:
        """Send a password-reset email pointing back at the app."""
        try:
            await self._auth.reset_password_for_email(
                email, {"redirect_to": self.config.password_reset_url}
            )
        except Exception as e:
            raise format_auth_error(e) from e

    async def current_identity(self) -> Optional[Identity]:
        """Identity of the stored session, if any."""
        try:
            session = await self._auth.get_session()
        except Exception as e:
            logger.warning(f"Could not read stored session: {e}")
            return None
        return self._identity(session.user, session) if session is not None else None

    def on_auth_state_change(self, callback: IdentityCallback) -> Callable[[], None]:
        """
        Subscribe to identity changes.

        ``callback`` receives the new Identity, or None after sign-out.

        Returns:
            Function that cancels the subscription
        """
        def listener(event: Any, session: Any) -> None:
            user = getattr(session, "user", None) if session is not None else None
            logger.debug(f"Auth event {event}")
            callback(self._identity(user, session))

        subscription = self._auth.on_auth_state_change(listener)
        return subscription.unsubscribe
