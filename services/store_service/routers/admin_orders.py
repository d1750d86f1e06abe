"""Admin order management router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.common.emails.client import EmailClient
from libs.db.session import get_async_db
from services.store_service.dependencies import get_store_email_client, require_admin
from services.store_service.errors import StoreError, raise_http
from services.store_service.models import OrderStatus, PaymentStatus, Profile
from services.store_service.schemas import (
    CheckoutStepResponse,
    OrderNotesUpdate,
    OrderResponse,
    OrderStatusUpdate,
    OrderSummary,
    PaymentOutcomeResponse,
    TrackingUpdate,
)
from services.store_service.services.checkout import CheckoutService
from services.store_service.services.order_admin import OrderAdminService, OrderFilters
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


def get_order_admin(
    email_client: EmailClient = Depends(get_store_email_client),
    db: AsyncSession = Depends(get_async_db),
) -> OrderAdminService:
    return OrderAdminService(db, email_client)


@router.get("/orders", response_model=list[OrderSummary])
async def list_orders(
    search: Optional[str] = Query(None, description="Order number, name or email"),
    status: Optional[OrderStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    admin: Profile = Depends(require_admin),
    service: OrderAdminService = Depends(get_order_admin),
):
    """List orders, newest first, with optional filters."""
    return await service.list_orders(
        OrderFilters(search=search, status=status, payment_status=payment_status)
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    service: OrderAdminService = Depends(get_order_admin),
):
    try:
        return await service.get_order(order_id)
    except StoreError as e:
        raise_http(e)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_in: OrderStatusUpdate,
    admin: Profile = Depends(require_admin),
    service: OrderAdminService = Depends(get_order_admin),
):
    """Change order status. Shipped, delivered and cancelled notify the customer."""
    try:
        return await service.update_status(order_id, status_in.status)
    except StoreError as e:
        raise_http(e)


@router.patch("/orders/{order_id}/tracking", response_model=OrderResponse)
async def update_order_tracking(
    order_id: uuid.UUID,
    tracking_in: TrackingUpdate,
    admin: Profile = Depends(require_admin),
    service: OrderAdminService = Depends(get_order_admin),
):
    """Set the tracking number; the order moves to shipped."""
    try:
        return await service.update_tracking(order_id, tracking_in.tracking_number)
    except StoreError as e:
        raise_http(e)


@router.patch("/orders/{order_id}/notes", response_model=OrderResponse)
async def update_order_notes(
    order_id: uuid.UUID,
    notes_in: OrderNotesUpdate,
    admin: Profile = Depends(require_admin),
    service: OrderAdminService = Depends(get_order_admin),
):
    try:
        return await service.update_notes(order_id, notes_in.notes)
    except StoreError as e:
        raise_http(e)


# ============================================================================
# POST-PAYMENT STEPS
# ============================================================================


@router.get("/orders/{order_id}/steps", response_model=list[CheckoutStepResponse])
async def get_checkout_steps(
    order_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    email_client: EmailClient = Depends(get_store_email_client),
    db: AsyncSession = Depends(get_async_db),
):
    """Progress of the post-payment steps for an order."""
    return await CheckoutService(db, email_client=email_client).step_status(order_id)


@router.post("/orders/{order_id}/resume", response_model=PaymentOutcomeResponse)
async def resume_checkout(
    order_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    email_client: EmailClient = Depends(get_store_email_client),
    db: AsyncSession = Depends(get_async_db),
):
    """Retry the post-payment steps that failed for a paid order."""
    try:
        return await CheckoutService(db, email_client=email_client).resume(order_id)
    except StoreError as e:
        raise_http(e)
