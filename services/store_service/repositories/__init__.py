"""Typed repositories for the store tables."""

from services.store_service.repositories.accounts import (
    AddressRepository,
    ProfileRepository,
)
from services.store_service.repositories.cart import CartOwner, CartRepository
from services.store_service.repositories.categories import CategoryRepository
from services.store_service.repositories.coupons import CouponRepository
from services.store_service.repositories.orders import OrderRepository
from services.store_service.repositories.payments import (
    CheckoutStepRepository,
    PaymentTransactionRepository,
)
from services.store_service.repositories.products import (
    ProductFilters,
    ProductRepository,
)

__all__ = [
    "AddressRepository",
    "CartOwner",
    "CartRepository",
    "CategoryRepository",
    "CheckoutStepRepository",
    "CouponRepository",
    "OrderRepository",
    "PaymentTransactionRepository",
    "ProductFilters",
    "ProductRepository",
    "ProfileRepository",
]
