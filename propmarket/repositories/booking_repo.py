from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.booking import Booking
from propmarket.models.property import Property


class BookingRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def add(self, **values: Any) -> Booking:
        b = Booking(**values)
        self.s.add(b)
        await self.s.flush()
        return b

    async def get_owned(self, booking_id: int, user_id: int, *, for_update: bool = False) -> Optional[Booking]:
        q = select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
        if for_update:
            q = q.with_for_update()
        res = await self.s.execute(q.execution_options(populate_existing=True))
        return res.scalar_one_or_none()

    async def get_by_payment_id(self, payment_id: str) -> Optional[Booking]:
        res = await self.s.execute(select(Booking).where(Booking.razorpay_payment_id == payment_id))
        return res.scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> Sequence[tuple[Booking, Optional[str]]]:
        """Bookings with the property's current primary image, newest first."""
        res = await self.s.execute(
            select(Booking, Property.image_url)
            .join(Property, Property.id == Booking.property_id, isouter=True)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return [(b, img) for b, img in res.all()]

    async def get_with_image(self, booking_id: int, user_id: int) -> Optional[tuple[Booking, Optional[str]]]:
        res = await self.s.execute(
            select(Booking, Property.image_url)
            .join(Property, Property.id == Booking.property_id, isouter=True)
            .where(Booking.id == booking_id, Booking.user_id == user_id)
        )
        row = res.first()
        return (row[0], row[1]) if row else None
