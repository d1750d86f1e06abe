"""Store checkout router: totals, order creation, payment confirmation."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from libs.common.currency import fetch_exchange_rate
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.dependencies import get_checkout_service
from services.store_service.errors import (
    NotFoundError,
    StoreError,
    raise_http,
)
from services.store_service.repositories import CouponRepository, OrderRepository
from services.store_service.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    CouponCheckRequest,
    CouponCheckResponse,
    GuestOrderLookup,
    OrderResponse,
    PaymentConfirmRequest,
    PaymentOutcomeResponse,
    PopupParamsResponse,
    TotalsResponse,
)
from services.store_service.services.checkout import CheckoutService, CustomerInfo
from services.store_service.services.pricing import calculate_totals, validate_coupon
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["store"])


@router.get("/checkout/totals", response_model=TotalsResponse)
async def get_totals(checkout: CheckoutService = Depends(get_checkout_service)):
    """Totals for the current cart without a coupon."""
    return calculate_totals(checkout.cart.get_cart_totals().subtotal)


@router.post("/checkout/coupon", response_model=CouponCheckResponse)
async def apply_coupon(
    coupon_in: CouponCheckRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Validate a coupon against the current cart and return the new totals."""
    subtotal = checkout.cart.get_cart_totals().subtotal
    try:
        coupon = validate_coupon(
            await CouponRepository(checkout.db).get_active_by_code(coupon_in.code),
            subtotal,
        )
    except StoreError as e:
        raise_http(e)
    return CouponCheckResponse(
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        totals=TotalsResponse.model_validate(calculate_totals(subtotal, coupon)),
    )


@router.get("/checkout/exchange-rate")
async def get_exchange_rate() -> dict[str, Decimal]:
    """Current USD to NGN rate (falls back to the configured rate)."""
    return {"usd_ngn": await fetch_exchange_rate()}


@router.post(
    "/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED
)
async def create_order(
    checkout_in: CheckoutRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Create an order from the cart.

    Paystack customers receive popup parameters; others get a pending order
    and the confirmation redirect.
    """
    try:
        result = await checkout.create_order(
            CustomerInfo(**checkout_in.customer.model_dump()),
            shipping_address=checkout_in.shipping_address.model_dump(),
            billing_address=checkout_in.billing_address.model_dump()
            if checkout_in.billing_address
            else None,
            coupon_code=checkout_in.coupon_code,
            notes=checkout_in.notes,
        )
    except StoreError as e:
        raise_http(e)
    except Exception as e:
        logger.exception(f"Checkout error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Checkout failed. Please try again.",
        )

    order = result.order
    return CheckoutResponse(
        order_id=order.id,
        order_number=order.order_number,
        total_usd=order.total_usd,
        total_ngn=order.total_ngn,
        exchange_rate=order.exchange_rate,
        requires_payment=result.requires_payment,
        payment=PopupParamsResponse.model_validate(result.payment)
        if result.payment
        else None,
        redirect_url=result.redirect_url,
    )


@router.post(
    "/checkout/orders/{order_id}/confirm", response_model=PaymentOutcomeResponse
)
async def confirm_payment(
    order_id: uuid.UUID,
    payment_in: PaymentConfirmRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Verify a Paystack payment and run the post-payment steps.

    Only the customer who placed the order (same user, or the same guest
    cart cookie) can confirm it. Orders without online payment get a 409.

    A completed payment with a failed follow-up step still returns 200 with
    ``success: false`` and a support message carrying the reference.
    """
    try:
        return await checkout.confirm_payment(order_id, payment_in.reference)
    except StoreError as e:
        raise_http(e)


@router.post(
    "/checkout/orders/{order_id}/cancel", status_code=status.HTTP_204_NO_CONTENT
)
async def cancel_payment(
    order_id: uuid.UUID,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Payment popup closed. The order stays pending."""
    try:
        await checkout.cancel_payment(order_id)
    except NotFoundError as e:
        raise_http(e)


@router.post("/orders/lookup", response_model=OrderResponse)
async def lookup_guest_order(
    lookup_in: GuestOrderLookup,
    db: AsyncSession = Depends(get_async_db),
):
    """Find an order by order number and customer email."""
    try:
        return await OrderRepository(db).get_by_number_and_email(
            lookup_in.order_number, lookup_in.email
        )
    except NotFoundError as e:
        raise_http(e)
