"""Auth router: sign-up, sign-in, sign-out, password reset, email verification."""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from services.store_service.dependencies import (
    get_auth_state,
    get_cart_state,
    get_guest_sessions,
    get_signed_in_auth_state,
)
from services.store_service.schemas import (
    AuthResponse,
    PasswordResetRequest,
    PasswordUpdate,
    ProfileResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    VerifyOtpRequest,
)
from services.store_service.services.auth_state import AuthResult, AuthState
from services.store_service.services.cart_state import (
    CartState,
    CookieGuestSessionStore,
)

router = APIRouter(tags=["auth"])


def _auth_response(auth: AuthState, result: AuthResult) -> AuthResponse:
    """Translate an AuthResult; failures become 400 with the provider's message."""
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=result.error
        )

    message = auth.notifier.messages[-1][1] if auth.notifier.messages else None
    session = None
    if auth.session is not None and auth.session.access_token:
        session = SessionResponse(
            access_token=auth.session.access_token,
            refresh_token=auth.session.refresh_token,
            user_id=auth.session.user.id,
            email=auth.session.user.email,
        )
    profile = (
        ProfileResponse.model_validate(auth.profile) if auth.profile else None
    )
    return AuthResponse(
        success=True,
        message=message,
        session=session,
        profile=profile,
        is_admin=auth.is_admin,
    )


async def _merge_cart(
    auth: AuthState,
    cart: CartState,
    guest_sessions: CookieGuestSessionStore,
    response: Response,
) -> None:
    if auth.profile is None:
        return
    await cart.merge_guest_cart(auth.profile.id)
    guest_sessions.apply(response)


@router.post("/sign-up", response_model=AuthResponse)
async def sign_up(
    sign_up_in: SignUpRequest,
    auth: AuthState = Depends(get_auth_state),
):
    """Create an account. The user must verify their email before signing in."""
    result = await auth.sign_up(
        sign_up_in.email, sign_up_in.password, sign_up_in.full_name
    )
    return _auth_response(auth, result)


@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(
    sign_in_in: SignInRequest,
    response: Response,
    auth: AuthState = Depends(get_auth_state),
    cart: CartState = Depends(get_cart_state),
    guest_sessions: CookieGuestSessionStore = Depends(get_guest_sessions),
):
    """Sign in with email and password; any guest cart moves to the user."""
    result = await auth.sign_in(sign_in_in.email, sign_in_in.password)
    auth_response = _auth_response(auth, result)
    await _merge_cart(auth, cart, guest_sessions, response)
    return auth_response


@router.post("/sign-out", response_model=AuthResponse)
async def sign_out(auth: AuthState = Depends(get_signed_in_auth_state)):
    result = await auth.sign_out()
    return _auth_response(auth, result)


@router.post("/reset-password", response_model=AuthResponse)
async def reset_password(
    reset_in: PasswordResetRequest,
    auth: AuthState = Depends(get_auth_state),
):
    """Email a password reset link."""
    result = await auth.reset_password(reset_in.email)
    return _auth_response(auth, result)


@router.post("/update-password", response_model=AuthResponse)
async def update_password(
    password_in: PasswordUpdate,
    auth: AuthState = Depends(get_signed_in_auth_state),
):
    """Set a new password (after following a recovery link)."""
    result = await auth.update_password(password_in.new_password)
    return _auth_response(auth, result)


@router.post("/verify", response_model=AuthResponse)
async def verify_email(
    verify_in: VerifyOtpRequest,
    response: Response,
    auth: AuthState = Depends(get_auth_state),
    cart: CartState = Depends(get_cart_state),
    guest_sessions: CookieGuestSessionStore = Depends(get_guest_sessions),
):
    """Confirm an email-verification or recovery link (token_hash + type)."""
    result = await auth.verify_otp(verify_in.token_hash, verify_in.type)
    auth_response = _auth_response(auth, result)
    await _merge_cart(auth, cart, guest_sessions, response)
    return auth_response


@router.get("/session", response_model=AuthResponse)
async def get_session(auth: AuthState = Depends(get_signed_in_auth_state)):
    """Current auth state: profile and admin flag for the bearer token."""
    return _auth_response(auth, AuthResult(success=True))
