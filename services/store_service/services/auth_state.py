"""Authentication state: session, profile and admin flag.

``AuthState`` owns one subscription to the gateway's auth-change stream.
Call ``start()`` to load the current session and subscribe, and ``stop()``
to unsubscribe (or use it as an async context manager). Every operation
reports its outcome through a ``Notifier`` and returns an ``AuthResult``.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.store_service.models import Profile
from services.store_service.repositories import ProfileRepository
from services.store_service.services.auth_gateway import (
    AuthGateway,
    AuthGatewayError,
    AuthSession,
    SessionUser,
    Unsubscribe,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SIGNED_OUT = "SIGNED_OUT"
PROFILE_EVENTS = frozenset(
    {"INITIAL_SESSION", "SIGNED_IN", "TOKEN_REFRESHED", "USER_UPDATED"}
)

# Fields a user may change on their own profile.
EDITABLE_PROFILE_FIELDS = frozenset({"full_name", "phone", "nationality"})


@dataclass
class AuthResult:
    success: bool
    data: Any = None
    error: Optional[str] = None


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes notices to the log."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)


class CollectingNotifier:
    """Notifier that keeps notices so an HTTP response can return them."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))


class ProfileStore(Protocol):
    async def get(self, user_id: uuid.UUID) -> Optional[Profile]: ...

    async def create(
        self, user_id: uuid.UUID, email: Optional[str], full_name: Optional[str]
    ) -> Profile: ...

    async def update(self, profile: Profile, updates: dict) -> Profile: ...


class DbProfileStore:
    """ProfileStore over the profiles table. Each write commits."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ProfileRepository(db)

    async def get(self, user_id: uuid.UUID) -> Optional[Profile]:
        return await self.repo.get(user_id)

    async def create(
        self, user_id: uuid.UUID, email: Optional[str], full_name: Optional[str]
    ) -> Profile:
        profile = await self.repo.create(user_id, email, full_name)
        await self.db.commit()
        return profile

    async def update(self, profile: Profile, updates: dict) -> Profile:
        profile = await self.repo.update(profile, updates)
        await self.db.commit()
        return profile


class AuthState:
    def __init__(
        self,
        gateway: AuthGateway,
        profiles: ProfileStore,
        notifier: Optional[Notifier] = None,
    ):
        self.gateway = gateway
        self.profiles = profiles
        self.notifier = notifier or LoggingNotifier()

        self.session: Optional[AuthSession] = None
        self.user: Optional[SessionUser] = None
        self.profile: Optional[Profile] = None
        self.is_admin = False
        self.loading = True

        self._unsubscribe: Optional[Unsubscribe] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> "AuthState":
        """Load the current session and profile, then subscribe to changes."""
        try:
            session = await self.gateway.get_session()
        except AuthGatewayError as e:
            logger.error(f"Error loading session: {e.message}")
            session = None
        await self._apply_session(session)

        if self._unsubscribe is None:
            self._unsubscribe = self.gateway.on_auth_state_change(
                self.handle_auth_event
            )
        return self

    def stop(self) -> None:
        """Unsubscribe from auth changes. Safe to call more than once."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    async def __aenter__(self) -> "AuthState":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    async def handle_auth_event(
        self, event: str, session: Optional[AuthSession]
    ) -> None:
        logger.info(f"Auth event: {event}")
        if event == SIGNED_OUT:
            await self._apply_session(None)
        elif event in PROFILE_EVENTS:
            await self._apply_session(session)

    async def _apply_session(self, session: Optional[AuthSession]) -> None:
        self.session = session
        self.user = session.user if session else None
        if self.user is None:
            self._clear_profile()
            self.loading = False
            return
        await self.fetch_profile()

    def _clear_profile(self) -> None:
        self.profile = None
        self.is_admin = False

    async def fetch_profile(self) -> Optional[Profile]:
        """Load the profile for the current user, creating it when missing."""
        try:
            if self.user is None:
                return None
            user_id = uuid.UUID(self.user.id)
            profile = await self.profiles.get(user_id)
            if profile is None:
                profile = await self.profiles.create(
                    user_id,
                    self.user.email,
                    self.user.user_metadata.get("full_name") or "",
                )
                logger.info(f"Created missing profile for user {user_id}")
            self.profile = profile
            self.is_admin = bool(profile.is_admin)
            return profile
        except Exception as e:
            logger.error(f"Error fetching profile: {e}")
            return None
        finally:
            self.loading = False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        redirect_to = f"{get_settings().FRONTEND_URL.rstrip('/')}/auth/verify"
        try:
            user = await self.gateway.sign_up(email, password, full_name, redirect_to)
        except AuthGatewayError as e:
            self.notifier.error(e.message)
            return AuthResult(success=False, error=e.message)

        if user is not None:
            try:
                uid = uuid.UUID(user.id)
                if await self.profiles.get(uid) is None:
                    await self.profiles.create(uid, user.email or email, full_name)
            except Exception as e:
                logger.error(f"Profile creation error: {e}")

        self.notifier.success("Account created! Please check your email to verify.")
        return AuthResult(success=True, data=user)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            session = await self.gateway.sign_in(email, password)
        except AuthGatewayError as e:
            self.notifier.error(e.message)
            return AuthResult(success=False, error=e.message)

        await self._apply_session(session)
        self.notifier.success("Welcome back!")
        return AuthResult(success=True, data=session)

    async def sign_out(self) -> AuthResult:
        try:
            await self.gateway.sign_out()
        except AuthGatewayError as e:
            self.notifier.error(e.message)
            return AuthResult(success=False, error=e.message)

        await self._apply_session(None)
        self.notifier.success("Signed out successfully")
        return AuthResult(success=True)

    async def reset_password(self, email: str) -> AuthResult:
        redirect_to = f"{get_settings().FRONTEND_URL.rstrip('/')}/reset-password"
        try:
            await self.gateway.reset_password(email, redirect_to)
        except AuthGatewayError as e:
            self.notifier.error(e.message)
            return AuthResult(success=False, error=e.message)

        self.notifier.success("Password reset email sent")
        return AuthResult(success=True)

    async def update_password(self, new_password: str) -> AuthResult:
        if self.user is None:
            self.notifier.error("No user logged in")
            return AuthResult(success=False, error="No user logged in")
        try:
            await self.gateway.update_password(self.user.id, new_password)
        except AuthGatewayError as e:
            self.notifier.error(e.message)
            return AuthResult(success=False, error=e.message)

        self.notifier.success("Password updated successfully")
        return AuthResult(success=True)

    async def update_profile(self, updates: dict) -> AuthResult:
        if self.user is None:
            self.notifier.error("No user logged in")
            return AuthResult(success=False, error="No user logged in")

        profile = self.profile or await self.fetch_profile()
        if profile is None:
            self.notifier.error("Profile not found")
            return AuthResult(success=False, error="Profile not found")

        changes = {k: v for k, v in updates.items() if k in EDITABLE_PROFILE_FIELDS}
        try:
            self.profile = await self.profiles.update(profile, changes)
        except Exception as e:
            logger.error(f"Update profile error: {e}")
            self.notifier.error(str(e))
            return AuthResult(success=False, error=str(e))

        self.notifier.success("Profile updated successfully")
        return AuthResult(success=True, data=self.profile)

    async def verify_otp(self, token_hash: str, otp_type: str) -> AuthResult:
        """Confirm an email-verification or recovery link (token_hash + type)."""
        try:
            session = await self.gateway.verify_otp(token_hash, otp_type)
        except AuthGatewayError as e:
            self.notifier.error(e.message)
            return AuthResult(success=False, error=e.message)

        await self._apply_session(session)
        message = (
            "Email verified successfully!"
            if otp_type in ("signup", "email")
            else "Link verified. You can now set a new password."
        )
        self.notifier.success(message)
        return AuthResult(success=True, data=session)
