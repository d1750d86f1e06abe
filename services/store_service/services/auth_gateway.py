"""Auth gateway over Supabase Auth.

The supabase SDK is synchronous, so every call runs in a worker thread.
A fresh client is built per gateway because the SDK keeps the signed-in
session on the client instance.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol

from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.supabase import get_supabase_admin_client
from supabase import Client, create_client

logger = get_logger(__name__)

AuthEventHandler = Callable[[str, Optional["AuthSession"]], Awaitable[None]]
Unsubscribe = Callable[[], None]


class AuthGatewayError(Exception):
    """An auth operation was rejected; ``message`` is safe to show the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class SessionUser:
    id: str
    email: Optional[str] = None
    user_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    user: SessionUser


class AuthGateway(Protocol):
    async def get_session(self) -> Optional[AuthSession]: ...

    def on_auth_state_change(self, handler: AuthEventHandler) -> Unsubscribe: ...

    async def sign_up(
        self, email: str, password: str, full_name: str, redirect_to: str
    ) -> Optional[SessionUser]: ...

    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def sign_out(self) -> None: ...

    async def reset_password(self, email: str, redirect_to: str) -> None: ...

    async def update_password(self, user_id: str, new_password: str) -> None: ...

    async def verify_otp(self, token_hash: str, otp_type: str) -> AuthSession: ...


def _to_user(user: Any) -> Optional[SessionUser]:
    if user is None:
        return None
    return SessionUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        user_metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


def _to_session(session: Any) -> Optional[AuthSession]:
    if session is None or getattr(session, "user", None) is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        user=_to_user(session.user),
    )


class SupabaseAuthGateway:
    """AuthGateway backed by the supabase SDK."""

    def __init__(
        self,
        client: Optional[Client] = None,
        admin_client: Optional[Client] = None,
    ):
        settings = get_settings()
        self.client = client or create_client(
            settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY
        )
        self._admin_client = admin_client

    @property
    def admin_client(self) -> Client:
        return self._admin_client or get_supabase_admin_client()

    async def _call(self, fn: Callable, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except Exception as e:
            # SDK AuthApiError carries the provider's user-facing message.
            message = getattr(e, "message", None) or str(e)
            name = getattr(fn, "__name__", "call")
            logger.warning(f"Supabase auth {name} failed: {message}")
            raise AuthGatewayError(message) from e

    async def get_session(self) -> Optional[AuthSession]:
        session = await self._call(self.client.auth.get_session)
        return _to_session(session)

    def on_auth_state_change(self, handler: AuthEventHandler) -> Unsubscribe:
        loop = asyncio.get_running_loop()

        def _callback(event, session):
            name = getattr(event, "value", event)
            asyncio.run_coroutine_threadsafe(
                handler(str(name), _to_session(session)), loop
            )

        subscription = self.client.auth.on_auth_state_change(_callback)
        return subscription.unsubscribe

    async def sign_up(
        self, email: str, password: str, full_name: str, redirect_to: str
    ) -> Optional[SessionUser]:
        response = await self._call(
            self.client.auth.sign_up,
            {
                "email": email,
                "password": password,
                "options": {
                    "data": {"full_name": full_name},
                    "email_redirect_to": redirect_to,
                },
            },
        )
        return _to_user(getattr(response, "user", None))

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._call(
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        session = _to_session(getattr(response, "session", None))
        if session is None:
            raise AuthGatewayError("Invalid login credentials")
        return session

    async def sign_out(self) -> None:
        await self._call(self.client.auth.sign_out)

    async def reset_password(self, email: str, redirect_to: str) -> None:
        await self._call(
            self.client.auth.reset_password_for_email,
            email,
            {"redirect_to": redirect_to},
        )

    async def update_password(self, user_id: str, new_password: str) -> None:
        await self._call(
            self.admin_client.auth.admin.update_user_by_id,
            user_id,
            {"password": new_password},
        )

    async def verify_otp(self, token_hash: str, otp_type: str) -> AuthSession:
        response = await self._call(
            self.client.auth.verify_otp,
            {"token_hash": token_hash, "type": otp_type},
        )
        session = _to_session(getattr(response, "session", None))
        if session is None:
            raise AuthGatewayError("Verification link is invalid or has expired")
        return session
