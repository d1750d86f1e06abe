"""Admin coupon router."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from libs.db.session import get_async_db
from services.store_service.dependencies import require_admin
from services.store_service.errors import StoreError, raise_http
from services.store_service.models import DiscountType, Profile
from services.store_service.repositories import CouponRepository
from services.store_service.schemas import CouponCreate, CouponResponse, CouponUpdate
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/coupons", response_model=list[CouponResponse])
async def list_coupons(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await CouponRepository(db).list_all()


@router.post(
    "/coupons", response_model=CouponResponse, status_code=status.HTTP_201_CREATED
)
async def create_coupon(
    coupon_in: CouponCreate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a coupon. Codes are stored upper-case."""
    try:
        coupon = await CouponRepository(db).create(coupon_in.model_dump())
    except StoreError as e:
        raise_http(e)
    await db.commit()
    return coupon


@router.get("/coupons/{coupon_id}", response_model=CouponResponse)
async def get_coupon(
    coupon_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    try:
        return await CouponRepository(db).get(coupon_id)
    except StoreError as e:
        raise_http(e)


@router.patch("/coupons/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: uuid.UUID,
    coupon_in: CouponUpdate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    repo = CouponRepository(db)
    try:
        coupon = await repo.get(coupon_id)
    except StoreError as e:
        raise_http(e)

    update_data = coupon_in.model_dump(exclude_unset=True)
    discount_type = update_data.get("discount_type", coupon.discount_type)
    discount_value = update_data.get("discount_value", coupon.discount_value)
    if discount_type == DiscountType.PERCENTAGE and discount_value > Decimal("100"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Percentage discount cannot exceed 100",
        )

    try:
        coupon = await repo.update(coupon, update_data)
    except StoreError as e:
        raise_http(e)
    await db.commit()
    return coupon


@router.post("/coupons/{coupon_id}/toggle-active", response_model=CouponResponse)
async def toggle_coupon_active(
    coupon_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    repo = CouponRepository(db)
    try:
        coupon = await repo.get(coupon_id)
    except StoreError as e:
        raise_http(e)
    coupon = await repo.update(coupon, {"is_active": not coupon.is_active})
    await db.commit()
    return coupon


@router.delete("/coupons/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_coupon(
    coupon_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a coupon. Orders keep the code they were placed with."""
    repo = CouponRepository(db)
    try:
        coupon = await repo.get(coupon_id)
    except StoreError as e:
        raise_http(e)
    await repo.delete(coupon)
    await db.commit()
