from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.s = session

    async def get(self, user_id: int) -> Optional[User]:
        return await self.s.get(User, user_id)

    async def get_for_update(self, user_id: int) -> Optional[User]:
        """Row lock held until the surrounding transaction ends (no-op on SQLite)."""
        q = await self.s.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return q.scalar_one_or_none()

    async def create(self, *, email: str, name: str, phone: str | None = None,
                     user_type: str = "individual") -> User:
        u = User(email=email, name=name, phone=phone, user_type=user_type)
        self.s.add(u)
        await self.s.flush()
        return u


UserRepo = UserRepository
__all__ = ["UserRepository", "UserRepo"]
