# propmarket/services/group_offer_service.py
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.errors import NotFound, OfferClosed, Unauthorized, ValidationError
from propmarket.models.group_offer import GroupOffer, STATUS_ACTIVE, STATUS_CLOSED, STATUS_CLOSING_SOON
from propmarket.models.user import User
from propmarket.repositories.group_offer_repo import GroupOfferRepo
from propmarket.services.storage import Storage, Upload
from propmarket.utils.dates import now_utc

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "title", "developer", "location", "original_price", "group_price",
    "discount", "savings", "type", "total_slots", "min_buyers", "time_left",
    "benefits", "status", "area", "possession", "rera_number",
    "facilities", "description", "advantages", "group_details",
)

# passed to add() explicitly after validation
SERVER_OWNED = ("status", "total_slots", "min_buyers")


def derive_status(filled: int, total: int, min_buyers: int, current: str) -> str:
    """Same transitions as GroupOfferRepo.increment_filled, for capacity edits."""
    if current == STATUS_CLOSED or filled >= total:
        return STATUS_CLOSED
    if 0 < filled and filled >= min_buyers and current == STATUS_ACTIVE:
        return STATUS_CLOSING_SOON
    return current


class GroupOfferService:
    def __init__(self, session: AsyncSession, storage: Storage) -> None:
        self.s = session
        self.storage = storage
        self.offers = GroupOfferRepo(session)

    async def list_public(self) -> Sequence[GroupOffer]:
        return await self.offers.list_open()

    async def get(self, offer_id: int) -> GroupOffer:
        offer = await self.offers.get(offer_id)
        if offer is None:
            raise NotFound("Offer not found")
        return offer

    async def create(self, user: User, data: dict[str, Any], uploads: Iterable[Upload] = ()) -> GroupOffer:
        total = int(data.get("total_slots") or 0)
        min_buyers = int(data.get("min_buyers") or 0)
        if total < 1:
            raise ValidationError("total_slots must be at least 1")
        if min_buyers < 0:
            raise ValidationError("min_buyers cannot be negative")

        images = await self.storage.save_many(uploads, folder="live-grouping")
        values = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS and k not in SERVER_OWNED}
        offer = await self.offers.add(
            **values,
            total_slots=total,
            min_buyers=min_buyers,
            filled_slots=0,
            status=STATUS_ACTIVE,
            images=images,
            image=images[0] if images else None,
            created_by=user.id,
        )
        await self.s.commit()
        logger.info("offer_created", extra={"user_id": user.id, "offer_id": offer.id})
        return offer

    async def update(
        self,
        user: User,
        offer_id: int,
        data: dict[str, Any],
        uploads: Optional[Iterable[Upload]] = None,
    ) -> GroupOffer:
        offer = await self.get(offer_id)
        if offer.created_by != user.id:
            raise Unauthorized()

        changes = {f: data[f] for f in UPDATABLE_FIELDS if data.get(f) is not None}
        total = int(changes.get("total_slots", offer.total_slots))
        min_buyers = int(changes.get("min_buyers", offer.min_buyers))
        if total < max(1, offer.filled_slots):
            raise ValidationError(
                f"total_slots must be at least {max(1, offer.filled_slots)} ({offer.filled_slots} already joined)"
            )
        if min_buyers < 0:
            raise ValidationError("min_buyers cannot be negative")

        for field, value in changes.items():
            setattr(offer, field, value)
        if "status" not in changes and ("total_slots" in changes or "min_buyers" in changes):
            offer.status = derive_status(offer.filled_slots, total, min_buyers, offer.status)

        uploads = list(uploads or ())
        if uploads:
            # replaced wholesale, never merged
            offer.images = await self.storage.save_many(uploads, folder="live-grouping")
            offer.image = offer.images[0]
        offer.updated_at = now_utc()

        await self.s.commit()
        return offer

    async def join(self, offer_id: int) -> GroupOffer:
        """
        Takes one slot. Active -> Closing Soon once min_buyers is reached,
        Closed once total_slots is reached. A full or closed offer is
        rejected without being modified.
        """
        took_slot = await self.offers.increment_filled(offer_id)
        await self.s.commit()

        offer = await self.offers.get(offer_id)
        if offer is None:
            raise NotFound("Offer not found")
        if not took_slot:
            logger.info("offer_join_rejected", extra={"offer_id": offer_id, "status": offer.status})
            raise OfferClosed("No slots left in this group")

        logger.info(
            "offer_joined",
            extra={"offer_id": offer.id, "filled": offer.filled_slots, "status": offer.status},
        )
        if offer.status == STATUS_CLOSED:
            logger.info("offer_closed", extra={"offer_id": offer.id})
        return offer
