"""Store Service models package."""

from services.store_service.models.accounts import Address, Profile
from services.store_service.models.catalog import (
    Category,
    Product,
    ProductImage,
    ProductVariant,
    sorted_images,
)
from services.store_service.models.commerce import (
    CartItem,
    CheckoutStep,
    Coupon,
    Order,
    OrderItem,
    PaymentTransaction,
)
from services.store_service.models.enums import (
    AddressType,
    CheckoutStepName,
    CheckoutStepStatus,
    DiscountType,
    OrderStatus,
    PaymentStatus,
)

__all__ = [
    "Address",
    "AddressType",
    "CartItem",
    "Category",
    "CheckoutStep",
    "CheckoutStepName",
    "CheckoutStepStatus",
    "Coupon",
    "DiscountType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "PaymentTransaction",
    "Product",
    "ProductImage",
    "ProductVariant",
    "Profile",
    "sorted_images",
]
