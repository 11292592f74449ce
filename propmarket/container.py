# propmarket/container.py
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from propmarket.models.base import Base
from propmarket.pay.razorpay import RazorpayGateway
from propmarket.services.booking_service import BookingService
from propmarket.services.group_offer_service import GroupOfferService
from propmarket.services.property_service import PropertyService
from propmarket.services.storage import Storage
from propmarket.services.subscription_service import SubscriptionService


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables that do not exist yet.
    In production run `alembic upgrade head` instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_services(session: AsyncSession, gateway: RazorpayGateway, storage: Storage) -> dict[str, Any]:
    """All services bound to one session."""
    return {
        "subscriptions": SubscriptionService(session, gateway),
        "bookings": BookingService(session, gateway),
        "offers": GroupOfferService(session, storage),
        "properties": PropertyService(session, storage),
    }
