"""Enum definitions for communications service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderEmailType(str, enum.Enum):
    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"


class EmailStatus(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"
    REJECTED = "rejected"  # Bad request, nothing was sent
