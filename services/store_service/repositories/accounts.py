"""Profile and saved-address queries."""

import uuid
from typing import Optional

from services.store_service.errors import NotFoundError
from services.store_service.models import Address, AddressType, Profile
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession


class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID) -> Optional[Profile]:
        return await self.db.get(Profile, user_id)

    async def create(
        self,
        user_id: uuid.UUID,
        email: Optional[str],
        full_name: Optional[str] = None,
    ) -> Profile:
        profile = Profile(id=user_id, email=email, full_name=full_name, is_admin=False)
        self.db.add(profile)
        await self.db.flush()
        return profile

    async def update(self, profile: Profile, data: dict) -> Profile:
        for field, value in data.items():
            setattr(profile, field, value)
        await self.db.flush()
        return profile

    async def list_customers(self) -> list[Profile]:
        """Non-admin profiles, newest first."""
        result = await self.db.execute(
            select(Profile)
            .where(Profile.is_admin.is_(False))
            .order_by(Profile.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_customers(self) -> int:
        result = await self.db.execute(
            select(func.count(Profile.id)).where(Profile.is_admin.is_(False))
        )
        return result.scalar_one()


class AddressRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_user(self, user_id: uuid.UUID) -> list[Address]:
        """Defaults first, then newest."""
        result = await self.db.execute(
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_for_user(self, address_id: uuid.UUID, user_id: uuid.UUID) -> Address:
        result = await self.db.execute(
            select(Address).where(Address.id == address_id, Address.user_id == user_id)
        )
        address = result.scalar_one_or_none()
        if not address:
            raise NotFoundError("Address not found")
        return address

    async def create(self, user_id: uuid.UUID, data: dict) -> Address:
        address = Address(user_id=user_id, **data)
        self.db.add(address)
        await self.db.flush()
        return address

    async def update(self, address: Address, data: dict) -> Address:
        for field, value in data.items():
            setattr(address, field, value)
        await self.db.flush()
        return address

    async def delete(self, address: Address) -> None:
        await self.db.delete(address)
        await self.db.flush()

    async def clear_defaults(
        self,
        user_id: uuid.UUID,
        address_type: AddressType,
        keep_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Unset is_default on the user's other addresses of this type."""
        query = update(Address).where(
            Address.user_id == user_id,
            Address.address_type == address_type,
            Address.is_default.is_(True),
        )
        if keep_id is not None:
            query = query.where(Address.id != keep_id)
        await self.db.execute(
            query.values(is_default=False).execution_options(
                synchronize_session="fetch"
            )
        )
