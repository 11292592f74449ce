from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from propmarket.models.base import Base
from propmarket.utils.dates import now_utc

PAYMENT_POSTVISIT = "postvisit"
PAYMENT_PREVISIT = "razorpay_previsit"


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int | None] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), index=True
    )
    # snapshot taken at booking time
    property_title: Mapped[str] = mapped_column(String(255), nullable=False)
    property_location: Mapped[str] = mapped_column(String(255), nullable=False)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)

    visit_date: Mapped[date] = mapped_column(Date, nullable=False)
    visit_time: Mapped[str] = mapped_column(String(20), nullable=False)
    number_of_people: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    person1_name: Mapped[str] = mapped_column(String(255), nullable=False)
    person2_name: Mapped[str | None] = mapped_column(String(255))
    person3_name: Mapped[str | None] = mapped_column(String(255))
    pickup_address: Mapped[str | None] = mapped_column(Text)

    payment_method: Mapped[str] = mapped_column(String(50), nullable=False, default=PAYMENT_POSTVISIT)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    razorpay_order_id: Mapped[str | None] = mapped_column(String(64), index=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(255), unique=True)
    payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    payment_currency: Mapped[str] = mapped_column(String(10), nullable=False, default="INR")
    payment_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )

    def __repr__(self) -> str:
        return (
            f"<Booking id={self.id} user={self.user_id} method={self.payment_method} "
            f"status={self.status} payment_status={self.payment_status}>"
        )
