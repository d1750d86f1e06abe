"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(price_usd=Decimal("90.00"))
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _suffix() -> str:
    return uuid.uuid4().hex[:8]


def _unique_email() -> str:
    return f"test-{_suffix()}@test.com"


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class ProfileFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Profile

        defaults = {
            "id": _uuid(),
            "email": _unique_email(),
            "full_name": "Test Customer",
            "phone": None,
            "nationality": None,
            "is_admin": False,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Profile(**defaults)


class AddressFactory:
    @staticmethod
    def create(user_id=None, **overrides):
        from services.store_service.models import Address, AddressType

        defaults = {
            "id": _uuid(),
            "user_id": user_id or _uuid(),
            "address_type": AddressType.SHIPPING,
            "full_name": "Test Customer",
            "phone": "+234 801 234 5678",
            "address_line1": "12 Admiralty Way",
            "city": "Lagos",
            "state": "Lagos",
            "postal_code": "101233",
            "country": "Nigeria",
            "is_default": False,
        }
        defaults.update(overrides)
        return Address(**defaults)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class CategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Category

        suffix = _suffix()
        defaults = {
            "id": _uuid(),
            "name": f"Dresses {suffix}",
            "slug": f"dresses-{suffix}",
            "description": "Evening and day dresses",
            "display_order": 0,
            "is_active": True,
        }
        defaults.update(overrides)
        return Category(**defaults)


class ProductFactory:
    @staticmethod
    def create(category_id=None, **overrides):
        from services.store_service.models import Product

        suffix = _suffix()
        defaults = {
            "id": _uuid(),
            "category_id": category_id,
            "name": f"Silk Wrap Dress {suffix}",
            "slug": f"silk-wrap-dress-{suffix}",
            "sku": f"SXO-{suffix.upper()}",
            "description": "Hand-finished silk wrap dress",
            "price_usd": Decimal("90.00"),
            "inventory_quantity": 10,
            "track_inventory": True,
            "low_stock_threshold": 5,
            "is_active": True,
            "is_featured": False,
        }
        defaults.update(overrides)
        return Product(**defaults)


class ProductImageFactory:
    @staticmethod
    def create(product_id=None, **overrides):
        from services.store_service.models import ProductImage

        defaults = {
            "id": _uuid(),
            "product_id": product_id or _uuid(),
            "image_url": f"https://cdn.test/{_suffix()}.jpg",
            "alt_text": "Front view",
            "display_order": 0,
            "is_primary": False,
        }
        defaults.update(overrides)
        return ProductImage(**defaults)


class VariantFactory:
    @staticmethod
    def create(product_id=None, **overrides):
        from services.store_service.models import ProductVariant

        defaults = {
            "id": _uuid(),
            "product_id": product_id or _uuid(),
            "size": "M",
            "color": "Black",
            "sku": f"SXO-V-{_suffix().upper()}",
            "price_adjustment_usd": Decimal("0.00"),
            "inventory_quantity": 5,
            "is_active": True,
        }
        defaults.update(overrides)
        return ProductVariant(**defaults)


# ---------------------------------------------------------------------------
# Commerce
# ---------------------------------------------------------------------------


class CouponFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Coupon, DiscountType

        defaults = {
            "id": _uuid(),
            "code": f"SAVE{_suffix().upper()}",
            "description": "Test coupon",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": Decimal("20"),
            "minimum_purchase_usd": None,
            "maximum_discount_usd": None,
            "usage_limit": None,
            "usage_count": 0,
            "valid_from": _now() - timedelta(days=1),
            "valid_until": _now() + timedelta(days=30),
            "is_active": True,
        }
        defaults.update(overrides)
        return Coupon(**defaults)


class OrderFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Order, OrderStatus, PaymentStatus

        defaults = {
            "id": _uuid(),
            "order_number": f"SXO6-{_now():%Y%m%d}-{_suffix()[:5].upper()}",
            "user_id": None,
            "customer_email": _unique_email(),
            "customer_name": "Test Customer",
            "customer_phone": "+234 801 234 5678",
            "customer_nationality": "Nigeria",
            "shipping_address": {
                "full_name": "Test Customer",
                "address_line1": "12 Admiralty Way",
                "city": "Lagos",
                "country": "Nigeria",
            },
            "subtotal_usd": Decimal("90.00"),
            "discount_usd": Decimal("0.00"),
            "shipping_usd": Decimal("15.00"),
            "tax_usd": Decimal("0.00"),
            "total_usd": Decimal("105.00"),
            "currency_paid": "USD",
            "status": OrderStatus.PENDING,
            "payment_status": PaymentStatus.PENDING,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Order(**defaults)


class OrderItemFactory:
    @staticmethod
    def create(order_id=None, **overrides):
        from services.store_service.models import OrderItem

        defaults = {
            "id": _uuid(),
            "order_id": order_id or _uuid(),
            "product_id": None,
            "variant_id": None,
            "product_name": "Silk Wrap Dress",
            "product_sku": "SXO-TEST",
            "price_usd": Decimal("90.00"),
            "quantity": 1,
            "subtotal_usd": Decimal("90.00"),
        }
        defaults.update(overrides)
        return OrderItem(**defaults)
