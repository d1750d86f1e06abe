"""Admin store catalog router: products, categories, image uploads."""

import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from libs.common.logging import get_logger
from libs.common.supabase import upload_public_file
from libs.common.validation import slugify
from libs.db.session import get_async_db
from services.store_service.dependencies import require_admin
from services.store_service.errors import StoreError, raise_http
from services.store_service.models import Profile
from services.store_service.repositories import CategoryRepository, ProductRepository
from services.store_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ImageUploadResponse,
    ProductCreate,
    ProductDetail,
    ProductResponse,
    ProductUpdate,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_all_products(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all products (including inactive)."""
    return await ProductRepository(db).list_all()


@router.post(
    "/products", response_model=ProductDetail, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a product with its images and variants."""
    data = product_in.model_dump(exclude={"images", "variants"})
    data["slug"] = data.get("slug") or slugify(product_in.name)
    try:
        product = await ProductRepository(db).create(
            data,
            images=[image.model_dump() for image in product_in.images],
            variants=[variant.model_dump() for variant in product_in.variants],
        )
    except StoreError as e:
        raise_http(e)
    await db.commit()
    logger.info(f"Product created: {product.slug}")
    return product


@router.get("/products/{product_id}", response_model=ProductDetail)
async def get_product(
    product_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    try:
        return await ProductRepository(db).get(product_id)
    except StoreError as e:
        raise_http(e)


@router.patch("/products/{product_id}", response_model=ProductDetail)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a product. Images and variants are replaced when provided."""
    repo = ProductRepository(db)
    update_data = product_in.model_dump(exclude_unset=True)
    images = update_data.pop("images", None)
    variants = update_data.pop("variants", None)
    if "slug" in update_data and not update_data["slug"]:
        update_data["slug"] = slugify(update_data.get("name") or "")
        if not update_data["slug"]:
            update_data.pop("slug")

    try:
        product = await repo.get(product_id)
        product = await repo.update(product, update_data, images, variants)
    except StoreError as e:
        raise_http(e)
    await db.commit()
    return product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product. Order history keeps its item snapshots."""
    repo = ProductRepository(db)
    try:
        product = await repo.get(product_id)
    except StoreError as e:
        raise_http(e)
    await repo.delete(product)
    await db.commit()
    logger.info(f"Product deleted: {product_id}")


@router.post("/products/{product_id}/toggle-active", response_model=ProductDetail)
async def toggle_product_active(
    product_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    repo = ProductRepository(db)
    try:
        product = await repo.get(product_id)
    except StoreError as e:
        raise_http(e)
    product = await repo.update(product, {"is_active": not product.is_active})
    await db.commit()
    return product


@router.post("/products/{product_id}/toggle-featured", response_model=ProductDetail)
async def toggle_product_featured(
    product_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    repo = ProductRepository(db)
    try:
        product = await repo.get(product_id)
    except StoreError as e:
        raise_http(e)
    product = await repo.update(product, {"is_featured": not product.is_featured})
    await db.commit()
    return product


@router.post(
    "/products/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_product_image(
    file: UploadFile = File(...),
    admin: Profile = Depends(require_admin),
):
    """Upload a product image to storage and return its public URL."""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only JPEG, PNG, WebP or GIF images are allowed",
        )
    data = await file.read()
    if len(data) > MAX_IMAGE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image must be 5MB or smaller",
        )

    try:
        url = await upload_public_file(
            data, file.filename or "image", content_type=file.content_type
        )
    except Exception as e:
        logger.error(f"Image upload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Image upload failed",
        )
    return ImageUploadResponse(url=url)


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_all_categories(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all categories (including inactive)."""
    return await CategoryRepository(db).list_all()


@router.post(
    "/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(
    category_in: CategoryCreate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    data = category_in.model_dump()
    data["slug"] = data.get("slug") or slugify(category_in.name)
    try:
        category = await CategoryRepository(db).create(data)
    except StoreError as e:
        raise_http(e)
    await db.commit()
    return category


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    category_in: CategoryUpdate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    repo = CategoryRepository(db)
    try:
        category = await repo.get(category_id)
        category = await repo.update(
            category, category_in.model_dump(exclude_unset=True)
        )
    except StoreError as e:
        raise_http(e)
    await db.commit()
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a category. Its products become uncategorised."""
    repo = CategoryRepository(db)
    try:
        category = await repo.get(category_id)
    except StoreError as e:
        raise_http(e)
    await repo.delete(category)
    await db.commit()
