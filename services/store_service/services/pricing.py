"""Order pricing: line prices, shipping, coupon discounts and totals.

All amounts are USD Decimals rounded to cents (half-up). Tax is always zero.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from libs.common.config import get_settings
from libs.common.currency import format_usd, quantize_money
from libs.common.datetime_utils import is_future, is_past
from services.store_service.errors import CouponError
from services.store_service.models import (
    Coupon,
    DiscountType,
    Product,
    ProductVariant,
)

ZERO = Decimal("0.00")

INVALID_COUPON = "Invalid coupon code"
EXPIRED_COUPON = "This coupon has expired"
NOT_YET_ACTIVE_COUPON = "This coupon is not active yet"
COUPON_LIMIT_REACHED = "This coupon has reached its usage limit"


@dataclass
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def unit_price(product: Product, variant: Optional[ProductVariant] = None) -> Decimal:
    """Product price plus the variant's adjustment, if any."""
    price = Decimal(product.price_usd)
    if variant is not None and variant.price_adjustment_usd:
        price += Decimal(variant.price_adjustment_usd)
    return quantize_money(price)


def subtotal_for(lines: Iterable[tuple[Decimal, int]]) -> Decimal:
    """Sum of unit price x quantity over (price, quantity) pairs."""
    return quantize_money(sum((price * qty for price, qty in lines), ZERO))


def shipping_for(subtotal: Decimal) -> Decimal:
    """Free at or above the threshold, flat fee below it."""
    settings = get_settings()
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD_USD:
        return ZERO
    return quantize_money(settings.FLAT_SHIPPING_USD)


def discount_for(coupon: Optional[Coupon], subtotal: Decimal) -> Decimal:
    """Coupon discount. Percentage discounts are capped at maximum_discount_usd."""
    if coupon is None:
        return ZERO

    value = Decimal(coupon.discount_value)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * value / Decimal(100)
        if coupon.maximum_discount_usd is not None:
            discount = min(discount, Decimal(coupon.maximum_discount_usd))
    else:
        # Fixed discounts are applied as-is; they are not clamped to the subtotal.
        discount = value
    return quantize_money(discount)


def calculate_totals(
    subtotal: Decimal, coupon: Optional[Coupon] = None
) -> OrderTotals:
    subtotal = quantize_money(subtotal)
    discount = discount_for(coupon, subtotal)
    shipping = shipping_for(subtotal)
    tax = ZERO
    total = quantize_money(subtotal - discount + shipping + tax)
    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        tax=tax,
        total=total,
    )


def validate_coupon(
    coupon: Optional[Coupon],
    subtotal: Decimal,
    now: Optional[datetime] = None,
) -> Coupon:
    """Raise CouponError with the customer-facing reason when a coupon cannot apply."""
    if coupon is None or not coupon.is_active:
        raise CouponError(INVALID_COUPON)
    if coupon.valid_from is not None and is_future(coupon.valid_from, now):
        raise CouponError(NOT_YET_ACTIVE_COUPON)
    if coupon.valid_until is not None and is_past(coupon.valid_until, now):
        raise CouponError(EXPIRED_COUPON)
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponError(COUPON_LIMIT_REACHED)
    if (
        coupon.minimum_purchase_usd is not None
        and subtotal < Decimal(coupon.minimum_purchase_usd)
    ):
        raise CouponError(
            f"Minimum purchase of {format_usd(coupon.minimum_purchase_usd)} required"
        )
    return coupon
