# propmarket/services/property_service.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.config import settings
from propmarket.errors import EditWindowClosed, NotFound, SubscriptionRequired
from propmarket.models.property import Property
from propmarket.models.user import User
from propmarket.repositories.property_repo import PropertyRepo
from propmarket.services.storage import Storage, Upload
from propmarket.services.subscription_service import is_eligible
from propmarket.utils.dates import as_utc, now_utc

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title", "type", "location", "price", "bhk", "description", "facilities",
    "company_name", "project_name", "total_units", "completion_date", "rera_number",
)


def can_create(user: User, now: datetime | None = None) -> bool:
    return is_eligible(user, now)


def can_edit(prop: Property, now: datetime | None = None, window_days: int | None = None) -> bool:
    """Time based only: the owner's subscription state does not matter here."""
    window = timedelta(days=settings.EDIT_WINDOW_DAYS if window_days is None else window_days)
    return (now or now_utc()) - as_utc(prop.created_at) <= window


class PropertyService:
    def __init__(self, session: AsyncSession, storage: Storage) -> None:
        self.s = session
        self.storage = storage
        self.props = PropertyRepo(session)

    async def create(
        self,
        user: User,
        data: dict[str, Any],
        uploads: Iterable[Upload] = (),
        now: datetime | None = None,
    ) -> Property:
        now = now or now_utc()
        if not can_create(user, now):
            logger.info("property_create_refused", extra={"user_id": user.id})
            raise SubscriptionRequired()

        images = await self.storage.save_many(uploads, folder="properties")
        values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        values["facilities"] = values.get("facilities") or []
        prop = await self.props.add(
            **values,
            image_url=images[0] if images else None,
            images=images,
            user_id=user.id,
            user_type=user.user_type,
            subscription_expiry=user.subscription_expiry,
            status="active",
            created_at=now,
        )
        await self.s.commit()
        logger.info("property_created", extra={"user_id": user.id, "property_id": prop.id})
        return prop

    async def update(
        self,
        user: User,
        property_id: int,
        data: dict[str, Any],
        uploads: Optional[Iterable[Upload]] = None,
        now: datetime | None = None,
    ) -> Property:
        now = now or now_utc()
        prop = await self.props.get_owned(property_id, user.id)
        if prop is None:
            raise NotFound("Property not found or unauthorized")
        if not can_edit(prop, now):
            raise EditWindowClosed(
                f"Property can only be edited within {settings.EDIT_WINDOW_DAYS} days of creation"
            )

        for field in EDITABLE_FIELDS:
            if data.get(field) is not None:
                setattr(prop, field, data[field])

        uploads = list(uploads or ())
        if uploads:
            prop.images = await self.storage.save_many(uploads, folder="properties")
            prop.image_url = prop.images[0]
        prop.updated_at = now

        await self.s.commit()
        return prop

    async def delete(self, user: User, property_id: int) -> None:
        if not await self.props.delete_owned(property_id, user.id):
            raise NotFound("Property not found or unauthorized")
        await self.s.commit()
        logger.info("property_deleted", extra={"user_id": user.id, "property_id": property_id})

    async def get(self, property_id: int) -> tuple[Property, Optional[User]]:
        row = await self.props.get_with_owner(property_id)
        if row is None:
            raise NotFound("Property not found")
        return row

    async def list_active(self, *, limit: int = 50, offset: int = 0) -> Sequence[Property]:
        return await self.props.list_by_status("active", limit=limit, offset=offset)

    async def list_for_user(self, user: User) -> Sequence[Property]:
        return await self.props.list_for_user(user.id)
