"""Store cart router.

Signed-in callers use their own cart; guests are identified by the
``guest_session_id`` cookie, which is issued on first use.
"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.store_service.dependencies import (
    get_cart_state,
    get_guest_sessions,
    user_uuid,
)
from services.store_service.errors import StoreError, raise_http
from services.store_service.routers._helpers import cart_response
from services.store_service.schemas import (
    CartItemCreate,
    CartItemUpdate,
    CartItemValidation,
    CartMergeResponse,
    CartResponse,
)
from services.store_service.services.cart_state import (
    CartState,
    CookieGuestSessionStore,
)

router = APIRouter(tags=["store"])


@router.get("/cart", response_model=CartResponse)
async def get_cart(cart: CartState = Depends(get_cart_state)):
    """Get the caller's cart with totals."""
    return cart_response(cart)


@router.post("/cart/items", response_model=CartResponse)
async def add_to_cart(
    item_in: CartItemCreate,
    cart: CartState = Depends(get_cart_state),
):
    """Add an item. Adding the same product/variant again increases its quantity."""
    try:
        await cart.add_to_cart(item_in.product_id, item_in.variant_id, item_in.quantity)
    except StoreError as e:
        raise_http(e)
    return cart_response(cart)


@router.patch("/cart/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: uuid.UUID,
    item_in: CartItemUpdate,
    cart: CartState = Depends(get_cart_state),
):
    """Set a line's quantity. Quantity 0 removes the line."""
    try:
        await cart.update_quantity(item_id, item_in.quantity)
    except StoreError as e:
        raise_http(e)
    return cart_response(cart)


@router.delete("/cart/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: uuid.UUID,
    cart: CartState = Depends(get_cart_state),
):
    try:
        await cart.remove_from_cart(item_id)
    except StoreError as e:
        raise_http(e)
    return cart_response(cart)


@router.delete("/cart", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(cart: CartState = Depends(get_cart_state)):
    await cart.clear_cart()


@router.get("/cart/validate", response_model=list[CartItemValidation])
async def validate_cart(cart: CartState = Depends(get_cart_state)):
    """Check every line against current stock and availability."""
    return await cart.validate_items()


@router.post("/cart/merge", response_model=CartMergeResponse)
async def merge_guest_cart(
    response: Response,
    current_user: AuthUser = Depends(get_current_user),
    guest_sessions: CookieGuestSessionStore = Depends(get_guest_sessions),
    cart: CartState = Depends(get_cart_state),
):
    """Move the guest cookie's cart lines into the signed-in user's cart."""
    merged = await cart.merge_guest_cart(user_uuid(current_user))
    guest_sessions.apply(response)
    return CartMergeResponse(merged=merged, cart=cart_response(cart))
