"""
User Session

Tracks who is signed in on this device and which top-level screen they
belong on. Auth tokens are kept in the local key-value store so a restart
can restore the session without asking for the password again.
"""
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

from scholarlink.errors import (
    AuthenticationError,
    NotFoundError,
    NotSignedInError,
    PermissionDeniedError,
    ValidationError,
)
from scholarlink.schemas.user import UserProfile, UserRole, VerificationStatus
from scholarlink.stores.auth_client import AuthClient, AuthSession
from scholarlink.stores.kv_store import KeyValueStore
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation

logger = logging.getLogger(__name__)

AUTH_SESSION_KEY = "scholarlink.auth.session"
MIN_PASSWORD_LENGTH = 6


class Destination(str, Enum):
    LANDING = "landing"
    PROFILE_SETUP = "profile_setup"
    ADMIN_PANEL = "admin_panel"
    TUTOR_DASHBOARD = "tutor_dashboard"
    LEARNER_HOME = "learner_home"


class UserSession:
    def __init__(self, auth: AuthClient, profiles: ProfileStore, kv: KeyValueStore):
        self._auth = auth
        self._profiles = profiles
        self._kv = kv
        self._auth_session: Optional[AuthSession] = None
        self._sign_out_listeners: List[Callable[[], Awaitable[None]]] = []
        self.current_user: Optional[UserProfile] = None

    @property
    def is_logged_in(self) -> bool:
        return self.current_user is not None

    @property
    def is_tutor(self) -> bool:
        return self.current_user is not None and self.current_user.user_role == UserRole.TUTOR

    @property
    def is_learner(self) -> bool:
        return self.current_user is not None and self.current_user.user_role == UserRole.LEARNER

    @property
    def is_admin(self) -> bool:
        return self.current_user is not None and self.current_user.user_role == UserRole.ADMIN

    @property
    def destination(self) -> Destination:
        """Top-level screen for the current state"""
        user = self.current_user
        if user is None:
            return Destination.LANDING
        if user.user_role == UserRole.ADMIN:
            return Destination.ADMIN_PANEL
        if not user.is_profile_complete:
            return Destination.PROFILE_SETUP
        if user.user_role == UserRole.TUTOR:
            return Destination.TUTOR_DASHBOARD
        return Destination.LEARNER_HOME

    def require_user(self) -> UserProfile:
        if self.current_user is None:
            raise NotSignedInError()
        return self.current_user

    def require_role(self, *roles: UserRole) -> UserProfile:
        user = self.require_user()
        if user.user_role not in roles:
            allowed = ", ".join(role.value for role in roles)
            raise PermissionDeniedError(f"This action is only available to: {allowed}")
        return user

    def add_sign_out_listener(self, listener: Callable[[], Awaitable[None]]) -> None:
        self._sign_out_listeners.append(listener)

    def login(self, user: UserProfile) -> None:
        self.current_user = user

    async def check_auth_status(self) -> Optional[UserProfile]:
        """Restore a previously stored auth session, if it is still valid."""
        with remote_operation(logger, "read stored auth session", "Failed to restore your session. Please try again."):
            stored = await self._kv.get_json(AUTH_SESSION_KEY)
        if not stored:
            return None

        auth_session = AuthSession.model_validate(stored)
        try:
            with remote_operation(logger, "validate auth session", "Failed to restore your session. Please try again."):
                user_id = await self._auth.get_user_id(auth_session.access_token)
        except AuthenticationError:
            logger.info("No active session: stored token was rejected")
            await self._kv.delete(AUTH_SESSION_KEY)
            return None

        self._auth_session = auth_session
        return await self.fetch_user_profile(user_id)

    async def fetch_user_profile(self, user_id: UUID) -> UserProfile:
        with remote_operation(logger, "fetch profile", "Failed to load your profile. Please try again."):
            profile = await self._profiles.get(user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)

        self.current_user = profile
        return profile

    async def lookup_profile(self, user_id: UUID) -> UserProfile:
        """Another user's profile; does not change who is signed in."""
        self.require_user()
        with remote_operation(logger, "look up profile", "Failed to load profile. Please try again."):
            profile = await self._profiles.get(user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    async def sign_in(self, email: str, password: str) -> UserProfile:
        email = email.strip().lower()
        if not email or not password:
            raise ValidationError("Please enter your email and password")

        with remote_operation(logger, "sign in", "Failed to sign in. Please try again."):
            auth_session = await self._auth.sign_in_with_password(email, password)
        await self._store_auth_session(auth_session)

        profile = await self.fetch_user_profile(auth_session.user_id)
        logger.info(f"User {profile.id} signed in as {profile.user_role.value}")
        return profile

    async def register(self, email: str, password: str, username: str, role: UserRole) -> UserProfile:
        email = email.strip().lower()
        username = username.strip()
        if "@" not in email:
            raise ValidationError("Enter a valid email address", field="email")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")
        if not username:
            raise ValidationError("Choose a username", field="username")
        if role not in (UserRole.LEARNER, UserRole.TUTOR):
            raise ValidationError("Choose whether you are a learner or a tutor", field="user_role")

        with remote_operation(logger, "register", "Failed to create your account. Please try again."):
            auth_session = await self._auth.sign_up(email, password)
            profile = await self._profiles.insert(
                {
                    "id": auth_session.user_id,
                    "email": email,
                    "username": username,
                    "user_role": role.value,
                    "is_profile_complete": False,
                    "verification_status": VerificationStatus.NOT_SUBMITTED.value,
                }
            )
        await self._store_auth_session(auth_session)

        self.login(profile)
        logger.info(f"Registered {role.value} account {profile.id}")
        return profile

    async def sign_out(self) -> None:
        if self._auth_session is not None:
            with remote_operation(logger, "sign out", "Failed to sign out. Please try again."):
                await self._auth.sign_out(self._auth_session.access_token)
                await self._kv.delete(AUTH_SESSION_KEY)

        self._auth_session = None
        self.current_user = None

        for listener in self._sign_out_listeners:
            await listener()
        logger.info("Signed out")

    async def _store_auth_session(self, auth_session: AuthSession) -> None:
        with remote_operation(logger, "store auth session", "Failed to sign in. Please try again."):
            await self._kv.set_json(AUTH_SESSION_KEY, auth_session.model_dump(mode="json"))
        self._auth_session = auth_session
