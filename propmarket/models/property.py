from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propmarket.models.base import Base
from propmarket.utils.dates import now_utc


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[str] = mapped_column(String(100), nullable=False)
    bhk: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    facilities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    image_url: Mapped[str | None] = mapped_column(Text)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(255))
    project_name: Mapped[str | None] = mapped_column(String(255))
    total_units: Mapped[str | None] = mapped_column(String(50))
    completion_date: Mapped[str | None] = mapped_column(String(50))
    rera_number: Mapped[str | None] = mapped_column(String(100))

    # copy of the owner's expiry at creation time, not a live reference
    subscription_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )

    owner = relationship("User", back_populates="properties")

    def __repr__(self) -> str:
        return f"<Property id={self.id} user={self.user_id} status={self.status}>"
