from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from propmarket.models.base import Base
from propmarket.utils.dates import now_utc

PURPOSE_SUBSCRIPTION = "subscription"
PURPOSE_BOOKING = "booking"


class Payment(Base):
    """Gateway order opened for a subscription plan or a site-visit fee.

    Every order this service opens gets a row, so a verified order can be
    matched back to what it was opened for.
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # subscription / booking
    purpose: Mapped[str] = mapped_column(String(16), nullable=False, default=PURPOSE_SUBSCRIPTION)
    # null for booking fees
    plan: Mapped[str | None] = mapped_column(String(32))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")

    provider: Mapped[str] = mapped_column(String(16), nullable=False, default="razorpay")
    provider_order_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    provider_payment_id: Mapped[str | None] = mapped_column(String(64), unique=True)

    # pending / paid
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")

    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)

    def __repr__(self) -> str:
        return (
            f"<Payment id={self.id} user={self.user_id} purpose={self.purpose} plan={self.plan} "
            f"amount={self.amount} status={self.status}>"
        )
