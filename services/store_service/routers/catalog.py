"""Public store catalog router: products and categories."""

import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.db.session import get_async_db
from services.store_service.errors import NotFoundError, raise_http
from services.store_service.repositories import (
    CategoryRepository,
    ProductFilters,
    ProductRepository,
)
from services.store_service.schemas import (
    AvailabilityResponse,
    CategoryResponse,
    CategoryWithCount,
    ProductDetail,
    ProductResponse,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryWithCount])
async def list_categories(db: AsyncSession = Depends(get_async_db)):
    """List active categories with their active product counts."""
    rows = await CategoryRepository(db).list_active_with_counts()
    return [
        CategoryWithCount.model_validate(category).model_copy(
            update={"product_count": count}
        )
        for category, count in rows
    ]


@router.get("/categories/{slug}", response_model=CategoryResponse)
async def get_category(slug: str, db: AsyncSession = Depends(get_async_db)):
    try:
        return await CategoryRepository(db).get_active_by_slug(slug)
    except NotFoundError as e:
        raise_http(e)


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    category_id: Optional[uuid.UUID] = Query(None),
    category: Optional[str] = Query(None, description="Category slug"),
    featured: Optional[bool] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_async_db),
):
    """List active products, newest first."""
    filters = ProductFilters(
        category_id=category_id,
        category_slug=category,
        featured=featured,
        min_price=min_price,
        max_price=max_price,
        search=search,
    )
    return await ProductRepository(db).list_active(filters)


@router.get("/products/featured", response_model=list[ProductResponse])
async def list_featured_products(
    limit: int = Query(8, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
):
    return await ProductRepository(db).featured(limit)


@router.get("/products/{slug}", response_model=ProductDetail)
async def get_product(slug: str, db: AsyncSession = Depends(get_async_db)):
    """Get an active product by slug, with images, variants and category."""
    try:
        return await ProductRepository(db).get_active_by_slug(slug)
    except NotFoundError as e:
        raise_http(e)


@router.get("/products/{slug}/related", response_model=list[ProductResponse])
async def get_related_products(
    slug: str,
    limit: int = Query(4, ge=1, le=20),
    db: AsyncSession = Depends(get_async_db),
):
    """Other active products from the same category."""
    repo = ProductRepository(db)
    try:
        product = await repo.get_active_by_slug(slug)
    except NotFoundError as e:
        raise_http(e)
    return await repo.related(product, limit)


@router.get(
    "/products/{product_id}/availability", response_model=AvailabilityResponse
)
async def check_availability(
    product_id: uuid.UUID,
    variant_id: Optional[uuid.UUID] = Query(None),
    quantity: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    """Whether the requested quantity can be ordered."""
    repo = ProductRepository(db)
    try:
        product = await repo.get(product_id)
        if variant_id is not None:
            variant = await repo.get_variant(variant_id)
            if variant.product_id != product.id:
                raise NotFoundError("Product variant not found")
            in_stock = variant.inventory_quantity
            available = (
                product.is_active and variant.is_active and in_stock >= quantity
            )
        else:
            in_stock = product.inventory_quantity
            available = product.is_active and (
                not product.track_inventory or in_stock >= quantity
            )
    except NotFoundError as e:
        raise_http(e)

    return AvailabilityResponse(
        product_id=product.id,
        variant_id=variant_id,
        quantity=quantity,
        available=available,
        in_stock=in_stock,
    )
