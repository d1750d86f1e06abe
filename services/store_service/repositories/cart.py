"""Cart item queries, keyed by user id or guest session id."""

import uuid
from dataclasses import dataclass
from typing import Optional

from services.store_service.errors import NotFoundError
from services.store_service.models import CartItem, Product
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload


@dataclass(frozen=True)
class CartOwner:
    """Exactly one of user_id / session_id is set."""

    user_id: Optional[uuid.UUID] = None
    session_id: Optional[str] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValueError("CartOwner needs exactly one of user_id or session_id")

    def clause(self):
        if self.user_id is not None:
            return CartItem.user_id == self.user_id
        return CartItem.session_id == self.session_id


class CartRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_owner(self, owner: CartOwner) -> list[CartItem]:
        """Rows with product (and its images) and variant loaded, oldest first."""
        query = (
            select(CartItem)
            .where(owner.clause())
            .options(
                selectinload(CartItem.product).selectinload(Product.images),
                selectinload(CartItem.variant),
            )
            .order_by(CartItem.created_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_line(
        self,
        owner: CartOwner,
        product_id: uuid.UUID,
        variant_id: Optional[uuid.UUID],
    ) -> Optional[CartItem]:
        variant_clause = (
            CartItem.variant_id.is_(None)
            if variant_id is None
            else CartItem.variant_id == variant_id
        )
        result = await self.db.execute(
            select(CartItem).where(
                owner.clause(), CartItem.product_id == product_id, variant_clause
            )
        )
        return result.scalars().first()

    async def get_for_owner(self, owner: CartOwner, item_id: uuid.UUID) -> CartItem:
        result = await self.db.execute(
            select(CartItem).where(CartItem.id == item_id, owner.clause())
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Cart item not found")
        return item

    async def add(
        self,
        owner: CartOwner,
        product_id: uuid.UUID,
        variant_id: Optional[uuid.UUID],
        quantity: int,
    ) -> CartItem:
        item = CartItem(
            user_id=owner.user_id,
            session_id=owner.session_id,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
        )
        self.db.add(item)
        await self.db.flush()
        return item

    async def set_quantity(self, item: CartItem, quantity: int) -> CartItem:
        item.quantity = quantity
        await self.db.flush()
        return item

    async def delete(self, item: CartItem) -> None:
        await self.db.delete(item)
        await self.db.flush()

    async def delete_for_owner(self, owner: CartOwner) -> None:
        await self.db.execute(
            delete(CartItem)
            .where(owner.clause())
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    async def reassign_to_user(self, item: CartItem, user_id: uuid.UUID) -> None:
        """Move a guest row to a user; session_id is cleared in the same write."""
        item.user_id = user_id
        item.session_id = None
        await self.db.flush()
