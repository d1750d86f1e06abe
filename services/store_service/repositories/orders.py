"""Order queries."""

import uuid
from decimal import Decimal
from typing import Optional

from services.store_service.errors import NotFoundError
from services.store_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload


def _with_items(query):
    return query.options(
        selectinload(Order.items).selectinload(OrderItem.product)
    ).execution_options(populate_existing=True)


class OrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, order: Order, items: list[OrderItem]) -> Order:
        order.items = items
        self.db.add(order)
        await self.db.flush()
        return await self.get(order.id)

    async def get(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            _with_items(select(Order).where(Order.id == order_id))
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def get_for_user(self, order_id: uuid.UUID, user_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            _with_items(
                select(Order).where(Order.id == order_id, Order.user_id == user_id)
            )
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def get_by_number_and_email(self, order_number: str, email: str) -> Order:
        """Guest lookup. Email comparison is case-insensitive."""
        result = await self.db.execute(
            _with_items(
                select(Order).where(
                    Order.order_number == order_number,
                    func.lower(Order.customer_email) == email.lower(),
                )
            )
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def get_by_reference(self, reference: str) -> Optional[Order]:
        result = await self.db.execute(
            _with_items(select(Order).where(Order.payment_reference == reference))
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[Order]:
        """Order history, newest first."""
        result = await self.db.execute(
            _with_items(
                select(Order)
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc())
            )
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Order]:
        result = await self.db.execute(
            _with_items(select(Order).order_by(Order.created_at.desc()))
        )
        return list(result.scalars().all())

    async def recent(self, limit: int = 10) -> list[Order]:
        result = await self.db.execute(
            select(Order).order_by(Order.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def update(self, order: Order, data: dict) -> Order:
        for field, value in data.items():
            setattr(order, field, value)
        await self.db.flush()
        return order

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Order.id)))
        return result.scalar_one()

    async def count_by_status(self, *statuses: OrderStatus) -> int:
        result = await self.db.execute(
            select(func.count(Order.id)).where(Order.status.in_(statuses))
        )
        return result.scalar_one()

    async def paid_revenue(self) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Order.total_usd), 0)).where(
                Order.payment_status == PaymentStatus.PAID
            )
        )
        return Decimal(str(result.scalar_one()))

    async def stats_by_user(self) -> dict[uuid.UUID, tuple[int, Decimal]]:
        """Order count and paid total per user id."""
        paid_total = func.sum(
            case((Order.payment_status == PaymentStatus.PAID, Order.total_usd), else_=0)
        )
        query = (
            select(
                Order.user_id,
                func.count(Order.id),
                func.coalesce(paid_total, 0),
            )
            .where(Order.user_id.is_not(None))
            .group_by(Order.user_id)
        )
        result = await self.db.execute(query)
        return {
            user_id: (count, Decimal(str(total)))
            for user_id, count, total in result.all()
        }
