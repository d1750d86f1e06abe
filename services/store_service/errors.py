"""Store service exceptions.

Services and repositories raise these; routers translate them into
HTTPException via ``raise_http``.
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status


class StoreError(Exception):
    """Base class for store errors carrying a user-facing message."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StoreError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateError(StoreError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CouponError(StoreError):
    pass


class CartError(StoreError):
    pass


class OrderStateError(StoreError):
    """The order is not in a state that allows the requested change."""

    status_code = status.HTTP_409_CONFLICT


class PaymentVerificationError(StoreError):
    """Payment could not be confirmed with the gateway."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


def raise_http(exc: StoreError) -> NoReturn:
    """Re-raise a StoreError as the matching HTTPException."""
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
