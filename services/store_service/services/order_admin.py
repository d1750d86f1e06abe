"""Admin order management, customer list and dashboard statistics."""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.emails.client import EmailClient
from libs.common.logging import get_logger
from services.store_service.errors import OrderStateError
from services.store_service.models import (
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
    Profile,
)
from services.store_service.repositories import (
    OrderRepository,
    ProductRepository,
    ProfileRepository,
)
from services.store_service.services.notifications import send_order_notification
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Status changes that notify the customer.
STATUS_EMAILS = {
    OrderStatus.SHIPPED: "order_shipped",
    OrderStatus.DELIVERED: "order_delivered",
    OrderStatus.CANCELLED: "order_cancelled",
}

DELIVERED_LOCKED = "Delivered orders can only have their tracking number changed"


@dataclass
class OrderFilters:
    search: Optional[str] = None
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


def filter_orders(orders: list[Order], filters: OrderFilters) -> list[Order]:
    """Substring search on number, name and email; equality on statuses."""
    needle = (filters.search or "").strip().lower()
    results = []
    for order in orders:
        if needle and not any(
            needle in (value or "").lower()
            for value in (order.order_number, order.customer_name, order.customer_email)
        ):
            continue
        if filters.status is not None and order.status != filters.status:
            continue
        if (
            filters.payment_status is not None
            and order.payment_status != filters.payment_status
        ):
            continue
        results.append(order)
    return results


@dataclass
class CustomerSummary:
    profile: Profile
    order_count: int = 0
    total_spent: Decimal = Decimal("0.00")


@dataclass
class DashboardStats:
    total_orders: int
    total_revenue: Decimal
    pending_orders: int
    total_customers: int
    total_products: int
    recent_orders: list[Order] = field(default_factory=list)
    low_stock_products: list[Product] = field(default_factory=list)


class OrderAdminService:
    def __init__(self, db: AsyncSession, email_client: Optional[EmailClient] = None):
        self.db = db
        self.email_client = email_client
        self.orders = OrderRepository(db)
        self.products = ProductRepository(db)
        self.profiles = ProfileRepository(db)

    async def list_orders(self, filters: Optional[OrderFilters] = None) -> list[Order]:
        orders = await self.orders.list_all()
        return filter_orders(orders, filters or OrderFilters())

    async def get_order(self, order_id: uuid.UUID) -> Order:
        return await self.orders.get(order_id)

    async def update_status(self, order_id: uuid.UUID, status: OrderStatus) -> Order:
        """Change status. shipped_at / delivered_at are set on first entry only."""
        order = await self.orders.get(order_id)
        previous = order.status
        if previous == OrderStatus.DELIVERED and status != previous:
            raise OrderStateError(DELIVERED_LOCKED)
        updates: dict = {"status": status}
        if status == OrderStatus.SHIPPED and order.shipped_at is None:
            updates["shipped_at"] = utc_now()
        if status == OrderStatus.DELIVERED and order.delivered_at is None:
            updates["delivered_at"] = utc_now()

        await self.orders.update(order, updates)
        await self.db.commit()
        order = await self.orders.get(order_id)
        logger.info(
            f"Order {order.order_number} status {previous.value} -> {status.value}"
        )

        if status != previous and status in STATUS_EMAILS:
            await self._notify(STATUS_EMAILS[status], order)
        return order

    async def update_tracking(
        self, order_id: uuid.UUID, tracking_number: str
    ) -> Order:
        """Store the tracking number and mark the order shipped.

        A delivered order keeps its status; only the number changes.
        """
        order = await self.orders.get(order_id)
        previous = order.status
        updates: dict = {"tracking_number": tracking_number}
        if previous != OrderStatus.DELIVERED:
            updates["status"] = OrderStatus.SHIPPED
            if order.shipped_at is None:
                updates["shipped_at"] = utc_now()

        await self.orders.update(order, updates)
        await self.db.commit()
        order = await self.orders.get(order_id)

        if previous not in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            await self._notify("order_shipped", order)
        return order

    async def update_notes(self, order_id: uuid.UUID, notes: Optional[str]) -> Order:
        order = await self.orders.get(order_id)
        if order.status == OrderStatus.DELIVERED:
            raise OrderStateError(DELIVERED_LOCKED)
        await self.orders.update(order, {"notes": notes})
        await self.db.commit()
        return await self.orders.get(order_id)

    async def _notify(self, email_type: str, order: Order) -> None:
        try:
            await send_order_notification(email_type, order, self.email_client)
        except Exception as e:
            logger.error(f"Error sending {email_type} email: {e}")

    # ------------------------------------------------------------------
    # Customers and dashboard
    # ------------------------------------------------------------------

    async def list_customers(self) -> list[CustomerSummary]:
        profiles = await self.profiles.list_customers()
        stats = await self.orders.stats_by_user()
        summaries = []
        for profile in profiles:
            count, total = stats.get(profile.id, (0, Decimal("0.00")))
            summaries.append(
                CustomerSummary(profile=profile, order_count=count, total_spent=total)
            )
        return summaries

    async def dashboard(self) -> DashboardStats:
        return DashboardStats(
            total_orders=await self.orders.count(),
            total_revenue=await self.orders.paid_revenue(),
            pending_orders=await self.orders.count_by_status(
                OrderStatus.PENDING, OrderStatus.PROCESSING
            ),
            total_customers=await self.profiles.count_customers(),
            total_products=await self.products.count(),
            recent_orders=await self.orders.recent(10),
            low_stock_products=await self.products.low_stock(),
        )
