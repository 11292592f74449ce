# propmarket/services/subscription_service.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.config import settings
from propmarket.errors import (
    InvalidPlan,
    NotFound,
    PaymentVerificationFailed,
    Unauthorized,
    ValidationError,
)
from propmarket.models.payment import PURPOSE_SUBSCRIPTION
from propmarket.models.user import User
from propmarket.pay.razorpay import RazorpayGateway
from propmarket.repositories.booking_repo import BookingRepo
from propmarket.repositories.payment_repo import PaymentRepo
from propmarket.repositories.user_repo import UserRepo
from propmarket.services.notification_service import NotificationService
from propmarket.utils.dates import add_months, as_utc, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    months: int
    price: Decimal
    description: str
    savings: Optional[str] = None


PLANS: dict[str, Plan] = {
    "1_month": Plan("1_month", "1 Month", 1, Decimal("500"), "Post properties for 1 month"),
    "6_months": Plan("6_months", "6 Months", 6, Decimal("2500"), "Post properties for 6 months", "Save ₹500"),
    "12_months": Plan("12_months", "12 Months", 12, Decimal("4500"), "Post properties for 12 months", "Save ₹1500"),
}


def get_plan(plan_id: str | None) -> Plan:
    plan = PLANS.get(plan_id or "")
    if plan is None:
        raise InvalidPlan(f"Invalid plan: {plan_id!r}")
    return plan


def is_eligible(user: User, now: datetime | None = None) -> bool:
    """
    The one definition of "may post listings". Used by the status query and
    by the property gate alike.
    A null expiry on a subscribed user counts as never expiring.
    """
    if not user.is_subscribed:
        return False
    expiry = as_utc(user.subscription_expiry)
    return expiry is None or expiry > (now or now_utc())


def next_expiry(current: datetime | None, plan: Plan, now: datetime) -> datetime:
    """Renewing before expiry extends from the old expiry, otherwise from now."""
    current = as_utc(current)
    if current is not None and current > now:
        return add_months(current, plan.months)
    return add_months(now, plan.months)


@dataclass
class SubscriptionState:
    is_subscribed: bool
    expiry: Optional[datetime]
    plan: Optional[str]
    price: Optional[Decimal]
    subscribed_at: Optional[datetime]

    @classmethod
    def of(cls, user: User, now: datetime | None = None) -> "SubscriptionState":
        return cls(
            is_subscribed=is_eligible(user, now),
            expiry=as_utc(user.subscription_expiry),
            plan=user.subscription_plan,
            price=user.subscription_price,
            subscribed_at=as_utc(user.subscribed_at),
        )


@dataclass(frozen=True)
class SubscriptionOrder:
    order_id: str
    amount: Decimal
    currency: str
    plan: str
    duration: int


class SubscriptionService:
    def __init__(self, session: AsyncSession, gateway: RazorpayGateway) -> None:
        self.s = session
        self.gateway = gateway
        self.users = UserRepo(session)
        self.payments = PaymentRepo(session)
        self.bookings = BookingRepo(session)
        self.notifications = NotificationService(session)

    # -------- queries --------

    @staticmethod
    def plans() -> list[Plan]:
        return list(PLANS.values())

    def status(self, user: User, now: datetime | None = None) -> SubscriptionState:
        return SubscriptionState.of(user, now)

    # -------- orders --------

    async def create_order(self, user: User, plan_id: str) -> SubscriptionOrder:
        plan = get_plan(plan_id)  # before any gateway call
        receipt = f"subscription_{user.id}_{int(time.time() * 1000)}"
        order = await self.gateway.create_order(plan.price, settings.BASE_CURRENCY, receipt)

        await self.payments.create(
            user_id=user.id,
            amount=plan.price,
            currency=settings.BASE_CURRENCY,
            plan=plan.id,
            provider_order_id=order.order_id,
        )
        await self.s.commit()

        logger.info(
            "subscription_order_created",
            extra={"user_id": user.id, "order_id": order.order_id, "plan": plan.id},
        )
        return SubscriptionOrder(
            order_id=order.order_id,
            amount=plan.price,
            currency=settings.BASE_CURRENCY,
            plan=plan.id,
            duration=plan.months,
        )

    # -------- activation --------

    async def activate_or_extend(
        self,
        user_id: int,
        plan_id: str,
        verified_amount: Decimal | None = None,
        now: datetime | None = None,
        *,
        commit: bool = True,
    ) -> SubscriptionState:
        """
        Lock the user row, derive the new expiry from the locked value, write
        it and queue the confirmation mail, all in one transaction.
        """
        plan = get_plan(plan_id)
        now = now or now_utc()
        price = plan.price if verified_amount is None else Decimal(str(verified_amount))

        user = await self.users.get_for_update(user_id)
        if user is None:
            raise NotFound("User not found")

        previous = as_utc(user.subscription_expiry)
        expiry = next_expiry(previous, plan, now)

        user.is_subscribed = True
        user.subscription_expiry = expiry
        user.subscription_plan = plan.id
        user.subscription_price = price
        if user.subscribed_at is None:
            user.subscribed_at = now
        user.updated_at = now

        await self.notifications.enqueue_subscription_confirmation(
            user.email, plan=plan.id, price=price, expiry=expiry
        )
        if commit:
            await self.s.commit()

        logger.info(
            "subscription_extended",
            extra={
                "user_id": user.id,
                "plan": plan.id,
                "previous_expiry": previous.isoformat() if previous else None,
                "expiry": expiry.isoformat(),
            },
        )
        return SubscriptionState.of(user, now)

    async def verify_payment(
        self,
        user: User,
        *,
        order_id: str,
        payment_id: str,
        signature: str,
        plan_id: str | None = None,
        now: datetime | None = None,
    ) -> SubscriptionState:
        """
        Only orders opened through create_order can activate a plan: the
        payments row fixes the plan and the amount, and a payment id that
        already paid any other order (subscription or site visit) is refused.
        """
        now = now or now_utc()
        if plan_id is not None:
            get_plan(plan_id)

        if not self.gateway.verify_payment(order_id, payment_id, signature):
            raise PaymentVerificationFailed()

        payment = await self.payments.get_by_order_id(order_id, for_update=True)
        if payment is None:
            raise ValidationError("Unknown payment order")
        if payment.purpose != PURPOSE_SUBSCRIPTION:
            raise ValidationError("Order was not opened for a subscription")
        if payment.user_id != user.id:
            raise Unauthorized("Payment order does not belong to this account")
        if plan_id is not None and plan_id != payment.plan:
            raise ValidationError("Plan does not match the ordered plan")
        if payment.status == "paid":
            if payment.provider_payment_id == payment_id:
                logger.info("subscription_payment_replay", extra={"user_id": user.id, "order_id": order_id})
                await self.s.refresh(user)
                return SubscriptionState.of(user, now)
            raise ValidationError("Order already paid with a different payment")

        used = await self.payments.get_by_payment_id(payment_id)
        if used is not None and used.id != payment.id:
            raise ValidationError("Payment already applied to another order")
        if await self.bookings.get_by_payment_id(payment_id) is not None:
            raise ValidationError("Payment already applied to a booking")

        state = await self.activate_or_extend(user.id, payment.plan, payment.amount, now, commit=False)
        await self.payments.mark_paid(payment, payment_id, now)
        await self.s.commit()
        return state
