"""Category queries."""

import uuid

from services.store_service.errors import DuplicateError, NotFoundError
from services.store_service.models import Category, Product
from services.store_service.repositories.base import unique_violation_field
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active_with_counts(self) -> list[tuple[Category, int]]:
        """Active categories by display order, with active product counts."""
        query = (
            select(Category, func.count(Product.id))
            .outerjoin(
                Product,
                and_(Product.category_id == Category.id, Product.is_active.is_(True)),
            )
            .where(Category.is_active.is_(True))
            .group_by(Category.id)
            .order_by(Category.display_order.asc(), Category.name.asc())
        )
        result = await self.db.execute(query)
        return [(category, count) for category, count in result.all()]

    async def list_all(self) -> list[Category]:
        result = await self.db.execute(
            select(Category).order_by(Category.display_order.asc(), Category.name.asc())
        )
        return list(result.scalars().all())

    async def get(self, category_id: uuid.UUID) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def get_active_by_slug(self, slug: str) -> Category:
        result = await self.db.execute(
            select(Category).where(Category.slug == slug, Category.is_active.is_(True))
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def create(self, data: dict) -> Category:
        category = Category(**data)
        self.db.add(category)
        await self._flush()
        return category

    async def update(self, category: Category, data: dict) -> Category:
        for field, value in data.items():
            setattr(category, field, value)
        await self._flush()
        return category

    async def delete(self, category: Category) -> None:
        await self.db.delete(category)
        await self.db.flush()

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if unique_violation_field(e, ("slug",)) is None:
                raise
            raise DuplicateError(
                "A category with this slug already exists", field="slug"
            ) from e
