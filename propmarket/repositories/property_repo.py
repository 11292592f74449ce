from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.property import Property
from propmarket.models.user import User


class PropertyRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def get(self, property_id: int) -> Optional[Property]:
        return await self.s.get(Property, property_id)

    async def get_with_owner(self, property_id: int) -> Optional[tuple[Property, Optional[User]]]:
        q = await self.s.execute(
            select(Property, User)
            .join(User, User.id == Property.user_id, isouter=True)
            .where(Property.id == property_id)
        )
        row = q.first()
        return (row[0], row[1]) if row else None

    async def get_owned(self, property_id: int, user_id: int) -> Optional[Property]:
        q = await self.s.execute(
            select(Property).where(Property.id == property_id, Property.user_id == user_id)
        )
        return q.scalar_one_or_none()

    async def add(self, **values: Any) -> Property:
        p = Property(**values)
        self.s.add(p)
        await self.s.flush()
        return p

    async def delete_owned(self, property_id: int, user_id: int) -> bool:
        res = await self.s.execute(
            delete(Property).where(Property.id == property_id, Property.user_id == user_id)
        )
        return (res.rowcount or 0) > 0

    async def list_by_status(self, status: str, *, limit: int = 50, offset: int = 0) -> Sequence[Property]:
        q = await self.s.execute(
            select(Property)
            .where(Property.status == status)
            .order_by(Property.created_at.desc(), Property.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return q.scalars().all()

    async def list_for_user(self, user_id: int) -> Sequence[Property]:
        q = await self.s.execute(
            select(Property)
            .where(Property.user_id == user_id)
            .order_by(Property.created_at.desc(), Property.id.desc())
        )
        return q.scalars().all()
