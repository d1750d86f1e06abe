"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_USD = "fixed_usd"


class AddressType(str, enum.Enum):
    SHIPPING = "shipping"
    BILLING = "billing"


class CheckoutStepName(str, enum.Enum):
    """Post-payment steps, in execution order."""

    MARK_PAID = "mark_paid"
    RECORD_TRANSACTION = "record_transaction"
    SEND_CONFIRMATION = "send_confirmation"
    DECREMENT_INVENTORY = "decrement_inventory"
    CLEAR_CART = "clear_cart"


class CheckoutStepStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
