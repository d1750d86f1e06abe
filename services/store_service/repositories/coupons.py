"""Coupon queries."""

import uuid
from typing import Optional

from services.store_service.errors import DuplicateError, NotFoundError
from services.store_service.models import Coupon
from services.store_service.repositories.base import unique_violation_field
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


class CouponRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_by_code(self, code: str) -> Optional[Coupon]:
        result = await self.db.execute(
            select(Coupon).where(
                Coupon.code == code.strip().upper(), Coupon.is_active.is_(True)
            )
        )
        return result.scalar_one_or_none()

    async def get(self, coupon_id: uuid.UUID) -> Coupon:
        coupon = await self.db.get(Coupon, coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    async def list_all(self) -> list[Coupon]:
        result = await self.db.execute(
            select(Coupon).order_by(Coupon.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(self, data: dict) -> Coupon:
        coupon = Coupon(**data)
        self.db.add(coupon)
        await self._flush()
        return coupon

    async def update(self, coupon: Coupon, data: dict) -> Coupon:
        for field, value in data.items():
            setattr(coupon, field, value)
        await self._flush()
        return coupon

    async def delete(self, coupon: Coupon) -> None:
        await self.db.delete(coupon)
        await self.db.flush()

    async def increment_usage(self, coupon_id: uuid.UUID) -> bool:
        """Bump usage_count unless the limit is reached.

        Single conditional UPDATE, so concurrent checkouts cannot push the
        count past ``usage_limit``. Returns False when no row was updated.
        """
        result = await self.db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                or_(
                    Coupon.usage_limit.is_(None),
                    Coupon.usage_count < Coupon.usage_limit,
                ),
            )
            .values(usage_count=Coupon.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if unique_violation_field(e, ("code",)) is None:
                raise
            raise DuplicateError(
                "A coupon with this code already exists", field="code"
            ) from e
