"""Product and variant queries."""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from services.store_service.errors import DuplicateError, NotFoundError
from services.store_service.models import (
    Category,
    Product,
    ProductImage,
    ProductVariant,
)
from services.store_service.repositories.base import unique_violation_field
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

DUPLICATE_MESSAGES = {
    "sku": "A product with this SKU already exists",
    "slug": "A product with this slug already exists",
}


@dataclass
class ProductFilters:
    category_id: Optional[uuid.UUID] = None
    category_slug: Optional[str] = None
    featured: Optional[bool] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    search: Optional[str] = None


def _with_details(query):
    return query.options(
        selectinload(Product.images),
        selectinload(Product.variants),
        selectinload(Product.category),
    )


class ProductRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_active(
        self, filters: Optional[ProductFilters] = None
    ) -> list[Product]:
        """Active products, newest first."""
        filters = filters or ProductFilters()
        query = select(Product).where(Product.is_active.is_(True))

        if filters.category_id:
            query = query.where(Product.category_id == filters.category_id)
        if filters.category_slug:
            query = query.join(Category, Product.category_id == Category.id).where(
                Category.slug == filters.category_slug
            )
        if filters.featured is not None:
            query = query.where(Product.is_featured.is_(filters.featured))
        if filters.min_price is not None:
            query = query.where(Product.price_usd >= filters.min_price)
        if filters.max_price is not None:
            query = query.where(Product.price_usd <= filters.max_price)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
            )

        query = _with_details(query.order_by(Product.created_at.desc()))
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def list_all(self) -> list[Product]:
        """Every product including inactive ones (admin)."""
        query = _with_details(select(Product).order_by(Product.created_at.desc()))
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def get(self, product_id: uuid.UUID) -> Product:
        query = _with_details(
            select(Product).where(Product.id == product_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def get_active_by_slug(self, slug: str) -> Product:
        query = _with_details(
            select(Product).where(Product.slug == slug, Product.is_active.is_(True))
        )
        result = await self.db.execute(query)
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def related(self, product: Product, limit: int = 4) -> list[Product]:
        """Other active products in the same category."""
        if not product.category_id:
            return []
        query = _with_details(
            select(Product)
            .where(
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active.is_(True),
            )
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def featured(self, limit: int = 8) -> list[Product]:
        query = _with_details(
            select(Product)
            .where(Product.is_active.is_(True), Product.is_featured.is_(True))
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def low_stock(self) -> list[Product]:
        query = (
            select(Product)
            .where(
                Product.track_inventory.is_(True),
                Product.inventory_quantity <= Product.low_stock_threshold,
            )
            .order_by(Product.inventory_quantity.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Product.id)))
        return result.scalar_one()

    async def get_variant(self, variant_id: uuid.UUID) -> ProductVariant:
        result = await self.db.execute(
            select(ProductVariant).where(ProductVariant.id == variant_id)
        )
        variant = result.scalar_one_or_none()
        if not variant:
            raise NotFoundError("Product variant not found")
        return variant

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        data: dict,
        images: Optional[list[dict]] = None,
        variants: Optional[list[dict]] = None,
    ) -> Product:
        product = Product(**data)
        product.images = [ProductImage(**image) for image in images or []]
        product.variants = [ProductVariant(**variant) for variant in variants or []]
        self.db.add(product)
        await self._flush()
        return await self.get(product.id)

    async def update(
        self,
        product: Product,
        data: dict,
        images: Optional[list[dict]] = None,
        variants: Optional[list[dict]] = None,
    ) -> Product:
        """Apply field updates. ``images``/``variants`` replace the sets when given."""
        for field, value in data.items():
            setattr(product, field, value)
        if images is not None:
            product.images = [ProductImage(**image) for image in images]
        if variants is not None:
            product.variants = [ProductVariant(**variant) for variant in variants]
        await self._flush()
        return await self.get(product.id)

    async def delete(self, product: Product) -> None:
        await self.db.delete(product)
        await self.db.flush()

    async def decrement_inventory(self, product_id: uuid.UUID, quantity: int) -> None:
        """Atomic decrement, applied only to tracked products."""
        await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.track_inventory.is_(True))
            .values(inventory_quantity=Product.inventory_quantity - quantity)
            .execution_options(synchronize_session=False)
        )

    async def decrement_variant_inventory(
        self, variant_id: uuid.UUID, quantity: int
    ) -> None:
        await self.db.execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .values(inventory_quantity=ProductVariant.inventory_quantity - quantity)
            .execution_options(synchronize_session=False)
        )

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            field = unique_violation_field(e, ("sku", "slug"))
            if field is None:
                raise
            raise DuplicateError(DUPLICATE_MESSAGES[field], field=field) from e
