"""FastAPI dependencies for the store service."""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser
from libs.common.emails.client import EmailClient, get_email_client
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Profile
from services.store_service.repositories import ProfileRepository
from services.store_service.services.auth_gateway import (
    AuthGateway,
    AuthSession,
    SessionUser,
    SupabaseAuthGateway,
)
from services.store_service.services.auth_state import (
    AuthState,
    CollectingNotifier,
    DbProfileStore,
)
from services.store_service.services.cart_state import (
    GUEST_SESSION_COOKIE,
    CartState,
    CookieGuestSessionStore,
)
from services.store_service.services.checkout import CheckoutService
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def user_uuid(user: AuthUser) -> uuid.UUID:
    try:
        return uuid.UUID(user.user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )


# ============================================================================
# PROFILE / ADMIN
# ============================================================================


async def get_current_profile(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
) -> Profile:
    """Profile of the signed-in user, created on first use."""
    repo = ProfileRepository(db)
    user_id = user_uuid(current_user)
    profile = await repo.get(user_id)
    if profile is None:
        profile = await repo.create(
            user_id, current_user.email, current_user.full_name or ""
        )
        await db.commit()
        logger.info(f"Created missing profile for user {user_id}")
    return profile


async def require_admin(
    profile: Annotated[Profile, Depends(get_current_profile)],
) -> Profile:
    """Allow only profiles flagged ``is_admin``."""
    if not profile.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return profile


# ============================================================================
# AUTH STATE
# ============================================================================


def get_auth_gateway() -> AuthGateway:
    return SupabaseAuthGateway()


def get_notifier() -> CollectingNotifier:
    return CollectingNotifier()


def session_from_user(user: AuthUser, access_token: str = "") -> AuthSession:
    return AuthSession(
        access_token=access_token,
        refresh_token=None,
        user=SessionUser(
            id=user.user_id, email=user.email, user_metadata=user.user_metadata
        ),
    )


async def get_auth_state(
    gateway: Annotated[AuthGateway, Depends(get_auth_gateway)],
    notifier: Annotated[CollectingNotifier, Depends(get_notifier)],
    db: AsyncSession = Depends(get_async_db),
) -> AuthState:
    """Anonymous auth state. Callers sign in or apply a session themselves."""
    auth = AuthState(gateway, DbProfileStore(db), notifier)
    auth.loading = False
    return auth


async def get_signed_in_auth_state(
    auth: Annotated[AuthState, Depends(get_auth_state)],
    current_user: Annotated[AuthUser, Depends(get_current_user)],
) -> AuthState:
    """Auth state restored from the bearer token."""
    await auth.handle_auth_event("INITIAL_SESSION", session_from_user(current_user))
    return auth


# ============================================================================
# CART / CHECKOUT
# ============================================================================


async def get_guest_sessions(request: Request) -> CookieGuestSessionStore:
    return CookieGuestSessionStore(request.cookies.get(GUEST_SESSION_COOKIE))


async def get_cart_state(
    response: Response,
    guest_sessions: Annotated[CookieGuestSessionStore, Depends(get_guest_sessions)],
    notifier: Annotated[CollectingNotifier, Depends(get_notifier)],
    current_user: Annotated[Optional[AuthUser], Depends(get_optional_user)],
    db: AsyncSession = Depends(get_async_db),
) -> CartState:
    """Cart for the caller: the user's rows when signed in, else the guest cookie's."""
    user_id = user_uuid(current_user) if current_user else None
    if user_id is None:
        guest_sessions.get_or_create()
        guest_sessions.apply(response)
    cart = CartState(db, guest_sessions, user_id=user_id, notifier=notifier)
    await cart.load()
    return cart


def get_store_email_client() -> EmailClient:
    return get_email_client()


async def get_checkout_service(
    cart: Annotated[CartState, Depends(get_cart_state)],
    email_client: Annotated[EmailClient, Depends(get_store_email_client)],
    db: AsyncSession = Depends(get_async_db),
) -> CheckoutService:
    return CheckoutService(db, cart=cart, email_client=email_client)
