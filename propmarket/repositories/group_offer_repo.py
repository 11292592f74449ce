from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import and_, case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.group_offer import (
    GroupOffer,
    STATUS_ACTIVE,
    STATUS_CLOSED,
    STATUS_CLOSING_SOON,
)
from propmarket.utils.dates import now_utc


class GroupOfferRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def get(self, offer_id: int) -> Optional[GroupOffer]:
        res = await self.s.execute(
            select(GroupOffer)
            .where(GroupOffer.id == offer_id)
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def add(self, **values: Any) -> GroupOffer:
        o = GroupOffer(**values)
        self.s.add(o)
        await self.s.flush()
        return o

    async def list_open(self) -> Sequence[GroupOffer]:
        res = await self.s.execute(
            select(GroupOffer)
            .where(GroupOffer.status != STATUS_CLOSED)
            .order_by(GroupOffer.created_at.desc(), GroupOffer.id.desc())
        )
        return res.scalars().all()

    async def increment_filled(self, offer_id: int) -> bool:
        """
        One atomic statement: take a slot only while capacity remains and
        derive the new status from the incremented count.
        Returns False when nothing was updated (missing or full/closed).
        """
        filled = GroupOffer.filled_slots + 1
        new_status = case(
            (filled >= GroupOffer.total_slots, STATUS_CLOSED),
            (
                and_(filled >= GroupOffer.min_buyers, GroupOffer.status == STATUS_ACTIVE),
                STATUS_CLOSING_SOON,
            ),
            else_=GroupOffer.status,
        )
        res = await self.s.execute(
            update(GroupOffer)
            .where(
                GroupOffer.id == offer_id,
                GroupOffer.filled_slots < GroupOffer.total_slots,
                GroupOffer.status != STATUS_CLOSED,
            )
            .values(filled_slots=filled, status=new_status, updated_at=now_utc())
            .execution_options(synchronize_session=False)
        )
        return (res.rowcount or 0) == 1
