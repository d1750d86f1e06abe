"""Account router: profile, order history, saved addresses."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.db.session import get_async_db
from services.store_service.dependencies import (
    get_current_profile,
    get_signed_in_auth_state,
)
from services.store_service.errors import NotFoundError, raise_http
from services.store_service.models import Profile
from services.store_service.repositories import AddressRepository, OrderRepository
from services.store_service.schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    OrderResponse,
    ProfileResponse,
    ProfileUpdate,
)
from services.store_service.services.auth_state import AuthState
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["account"])


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    profile_in: ProfileUpdate,
    auth: AuthState = Depends(get_signed_in_auth_state),
):
    """Update name, phone or nationality."""
    result = await auth.update_profile(profile_in.model_dump(exclude_unset=True))
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=result.error
        )
    return result.data


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def list_my_orders(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_db),
):
    """Order history, newest first."""
    return await OrderRepository(db).list_for_user(profile.id)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_db),
):
    try:
        return await OrderRepository(db).get_for_user(order_id, profile.id)
    except NotFoundError as e:
        raise_http(e)


# ============================================================================
# ADDRESSES
# ============================================================================


@router.get("/addresses", response_model=list[AddressResponse])
async def list_addresses(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_db),
):
    return await AddressRepository(db).list_for_user(profile.id)


@router.post(
    "/addresses", response_model=AddressResponse, status_code=status.HTTP_201_CREATED
)
async def create_address(
    address_in: AddressCreate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_db),
):
    """Save an address. A new default replaces the previous default of its type."""
    repo = AddressRepository(db)
    if address_in.is_default:
        await repo.clear_defaults(profile.id, address_in.address_type)
    address = await repo.create(profile.id, address_in.model_dump())
    await db.commit()
    return address


@router.patch("/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: uuid.UUID,
    address_in: AddressUpdate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_db),
):
    repo = AddressRepository(db)
    try:
        address = await repo.get_for_user(address_id, profile.id)
    except NotFoundError as e:
        raise_http(e)

    update_data = address_in.model_dump(exclude_unset=True)
    address_type = update_data.get("address_type", address.address_type)
    if update_data.get("is_default") or (
        "address_type" in update_data and address.is_default
    ):
        await repo.clear_defaults(profile.id, address_type, keep_id=address.id)

    address = await repo.update(address, update_data)
    await db.commit()
    return address


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    address_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_db),
):
    repo = AddressRepository(db)
    try:
        address = await repo.get_for_user(address_id, profile.id)
    except NotFoundError as e:
        raise_http(e)
    await repo.delete(address)
    await db.commit()
