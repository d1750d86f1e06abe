"""Cart state keyed by user id or guest session token.

Signed-in users own rows through ``user_id``; guests through a session
token kept by a ``GuestSessionStore`` (a cookie over HTTP). In-memory state
changes only after the database write has committed.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Protocol

from libs.common.currency import quantize_money
from libs.common.logging import get_logger
from services.store_service.errors import CartError, NotFoundError
from services.store_service.models import (
    CartItem,
    Product,
    ProductImage,
    ProductVariant,
    sorted_images,
)
from services.store_service.repositories import (
    CartOwner,
    CartRepository,
    ProductRepository,
)
from services.store_service.services.auth_state import LoggingNotifier, Notifier
from services.store_service.services.pricing import unit_price
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

GUEST_SESSION_COOKIE = "guest_session_id"


# ============================================================================
# GUEST SESSION TOKEN
# ============================================================================


class GuestSessionStore(Protocol):
    def get(self) -> Optional[str]: ...

    def get_or_create(self) -> str: ...

    def clear(self) -> None: ...


class InMemoryGuestSessionStore:
    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id

    def get(self) -> Optional[str]:
        return self.session_id

    def get_or_create(self) -> str:
        if not self.session_id:
            self.session_id = str(uuid.uuid4())
        return self.session_id

    def clear(self) -> None:
        self.session_id = None


class CookieGuestSessionStore(InMemoryGuestSessionStore):
    """Token read from the request cookie; changes are written back by ``apply``."""

    def __init__(self, cookie_value: Optional[str] = None):
        super().__init__(cookie_value)
        self._original = cookie_value

    def apply(self, response, max_age: int = 60 * 60 * 24 * 30) -> None:
        if self.session_id == self._original:
            return
        if self.session_id:
            response.set_cookie(
                GUEST_SESSION_COOKIE,
                self.session_id,
                max_age=max_age,
                httponly=True,
                samesite="lax",
            )
        else:
            response.delete_cookie(GUEST_SESSION_COOKIE)


# ============================================================================
# CART VIEWS
# ============================================================================


@dataclass
class CartLine:
    item: CartItem
    product: Product
    variant: Optional[ProductVariant]
    images: list[ProductImage]

    @property
    def id(self) -> uuid.UUID:
        return self.item.id

    @property
    def quantity(self) -> int:
        return self.item.quantity

    @property
    def unit_price(self) -> Decimal:
        return unit_price(self.product, self.variant)

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)


@dataclass
class CartTotals:
    subtotal: Decimal
    item_count: int
    items: list[CartLine] = field(default_factory=list)


@dataclass
class ItemValidation:
    item_id: uuid.UUID
    valid: bool
    message: Optional[str] = None


def _to_line(item: CartItem) -> CartLine:
    return CartLine(
        item=item,
        product=item.product,
        variant=item.variant,
        images=sorted_images(item.product.images),
    )


# ============================================================================
# CART STATE
# ============================================================================


class CartState:
    def __init__(
        self,
        db: AsyncSession,
        guest_sessions: GuestSessionStore,
        user_id: Optional[uuid.UUID] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.db = db
        self.guest_sessions = guest_sessions
        self.user_id = user_id
        self.notifier = notifier or LoggingNotifier()
        self.repo = CartRepository(db)
        self.products = ProductRepository(db)

        self.cart_items: list[CartLine] = []
        self.loading = True
        self._loaded_owner: Optional[CartOwner] = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def owner(self) -> CartOwner:
        if self.user_id is not None:
            return CartOwner(user_id=self.user_id)
        return CartOwner(session_id=self.guest_sessions.get_or_create())

    async def set_user(self, user_id: Optional[uuid.UUID]) -> bool:
        """Switch identity. Reloads only when the resolved owner changes."""
        self.user_id = user_id
        if self.owner == self._loaded_owner:
            return False
        await self.load()
        return True

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.cart_items)

    def get_cart_totals(self) -> CartTotals:
        subtotal = quantize_money(
            sum((line.line_total for line in self.cart_items), Decimal("0"))
        )
        return CartTotals(
            subtotal=subtotal, item_count=self.item_count, items=list(self.cart_items)
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load(self) -> list[CartLine]:
        """Read the owner's rows; lines whose product is inactive are dropped."""
        owner = self.owner
        self.loading = True
        try:
            rows = await self.repo.list_for_owner(owner)
            self.cart_items = [
                _to_line(row)
                for row in rows
                if row.product is not None and row.product.is_active
            ]
            self._loaded_owner = owner
        finally:
            self.loading = False
        return self.cart_items

    async def add_to_cart(
        self,
        product_id: uuid.UUID,
        variant_id: Optional[uuid.UUID] = None,
        quantity: int = 1,
    ) -> CartLine:
        """Add a line, or fold into the existing (product, variant) line."""
        if quantity < 1:
            raise CartError("Quantity must be at least 1")

        try:
            product = await self.products.get(product_id)
        except NotFoundError:
            self.notifier.error("Failed to add to cart")
            raise
        if not product.is_active:
            self.notifier.error("Failed to add to cart")
            raise CartError("This product is no longer available")
        if variant_id is not None and not any(
            v.id == variant_id for v in product.variants
        ):
            self.notifier.error("Failed to add to cart")
            raise NotFoundError("Product variant not found")

        owner = self.owner
        existing = await self.repo.find_line(owner, product_id, variant_id)
        if existing is not None:
            return await self.update_quantity(existing.id, existing.quantity + quantity)

        try:
            item = await self.repo.add(owner, product_id, variant_id, quantity)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception("Error adding to cart")
            self.notifier.error("Failed to add to cart")
            raise

        await self.load()
        self.notifier.success("Added to cart")
        return self._line(item.id)

    async def update_quantity(
        self, item_id: uuid.UUID, quantity: int
    ) -> Optional[CartLine]:
        """Set a line's quantity; anything below 1 removes the line."""
        if quantity < 1:
            await self.remove_from_cart(item_id)
            return None

        item = await self.repo.get_for_owner(self.owner, item_id)
        try:
            await self.repo.set_quantity(item, quantity)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception("Error updating quantity")
            self.notifier.error("Failed to update quantity")
            raise

        await self.load()
        return self._line(item_id)

    async def remove_from_cart(self, item_id: uuid.UUID) -> None:
        item = await self.repo.get_for_owner(self.owner, item_id)
        try:
            await self.repo.delete(item)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception("Error removing from cart")
            self.notifier.error("Failed to remove from cart")
            raise

        self.cart_items = [line for line in self.cart_items if line.id != item_id]
        self.notifier.success("Removed from cart")

    async def clear_cart(self) -> None:
        try:
            await self.repo.delete_for_owner(self.owner)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception("Error clearing cart")
            raise
        self.cart_items = []

    async def merge_guest_cart(self, user_id: uuid.UUID) -> int:
        """Move every guest row to ``user_id``. Returns the number moved.

        A guest row for a (product, variant) the user already has is folded
        into that line. Rows move one at a time. A failure stops the merge,
        is logged, and leaves the remaining rows (and the guest token) in
        place.
        """
        guest_session_id = self.guest_sessions.get()
        if not guest_session_id:
            return 0

        guest_rows = await self.repo.list_for_owner(
            CartOwner(session_id=guest_session_id)
        )
        user_owner = CartOwner(user_id=user_id)
        moved = 0
        failed = False
        for row in guest_rows:
            try:
                existing = await self.repo.find_line(
                    user_owner, row.product_id, row.variant_id
                )
                if existing is not None:
                    await self.repo.set_quantity(
                        existing, existing.quantity + row.quantity
                    )
                    await self.repo.delete(row)
                else:
                    await self.repo.reassign_to_user(row, user_id)
                await self.db.commit()
                moved += 1
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error merging guest cart: {e}")
                failed = True
                break

        if not failed:
            self.guest_sessions.clear()
        self.user_id = user_id
        await self.load()
        if moved:
            logger.info(f"Merged {moved} guest cart item(s) into user {user_id}")
        return moved

    async def validate_items(self) -> list[ItemValidation]:
        """Check each line against current stock and active flags."""
        results = []
        for line in self.cart_items:
            if line.item.variant_id is not None:
                variant = line.variant
                if variant is None or not variant.is_active:
                    results.append(
                        ItemValidation(
                            line.id, False, "This variant is no longer available"
                        )
                    )
                elif variant.inventory_quantity < line.quantity:
                    results.append(
                        ItemValidation(
                            line.id,
                            False,
                            f"Only {variant.inventory_quantity} in stock",
                        )
                    )
                else:
                    results.append(ItemValidation(line.id, True))
                continue

            product = line.product
            if product is None or not product.is_active:
                results.append(
                    ItemValidation(
                        line.id, False, "This product is no longer available"
                    )
                )
            elif (
                product.track_inventory
                and product.inventory_quantity < line.quantity
            ):
                results.append(
                    ItemValidation(
                        line.id, False, f"Only {product.inventory_quantity} in stock"
                    )
                )
            else:
                results.append(ItemValidation(line.id, True))
        return results

    def _line(self, item_id: uuid.UUID) -> Optional[CartLine]:
        return next((line for line in self.cart_items if line.id == item_id), None)
