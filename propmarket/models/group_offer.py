from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from propmarket.models.base import Base
from propmarket.utils.dates import now_utc

STATUS_ACTIVE = "Active"
STATUS_CLOSING_SOON = "Closing Soon"
STATUS_CLOSED = "Closed"


class GroupOffer(Base):
    __tablename__ = "live_grouping_properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    developer: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    original_price: Mapped[str] = mapped_column(String(100), nullable=False)
    group_price: Mapped[str] = mapped_column(String(100), nullable=False)
    discount: Mapped[str | None] = mapped_column(String(50))
    savings: Mapped[str | None] = mapped_column(String(100))
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    total_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    filled_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_buyers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_left: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=STATUS_ACTIVE, index=True)

    benefits: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    area: Mapped[str | None] = mapped_column(String(100))
    possession: Mapped[str | None] = mapped_column(String(100))
    rera_number: Mapped[str | None] = mapped_column(String(100))
    facilities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text)
    advantages: Mapped[dict | list | None] = mapped_column(JSON)
    group_details: Mapped[dict | list | None] = mapped_column(JSON)

    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    image: Mapped[str | None] = mapped_column(Text)

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )

    def __repr__(self) -> str:
        return (
            f"<GroupOffer id={self.id} filled={self.filled_slots}/{self.total_slots} "
            f"min={self.min_buyers} status={self.status}>"
        )
