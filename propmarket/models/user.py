# propmarket/models/user.py
from __future__ import annotations

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric
from sqlalchemy.orm import relationship

from propmarket.models.base import Base
from propmarket.utils.dates import now_utc


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    user_type = Column(String(20), nullable=False, default="individual")  # individual | developer

    # Paid access window. Only SubscriptionService writes these.
    is_subscribed = Column(Boolean, nullable=False, default=False)
    subscription_expiry = Column(DateTime(timezone=True), nullable=True)
    subscription_plan = Column(String(50), nullable=True)
    subscription_price = Column(Numeric(10, 2), nullable=True)
    subscribed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)

    properties = relationship(
        "Property",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} subscribed={self.is_subscribed}>"
