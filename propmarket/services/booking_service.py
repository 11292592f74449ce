# propmarket/services/booking_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.config import settings
from propmarket.errors import (
    GatewayUnavailable,
    NotFound,
    PaymentVerificationFailed,
    ValidationError,
)
from propmarket.models.booking import Booking, PAYMENT_POSTVISIT, PAYMENT_PREVISIT
from propmarket.models.payment import PURPOSE_BOOKING
from propmarket.models.user import User
from propmarket.pay.razorpay import RazorpayGateway
from propmarket.repositories.booking_repo import BookingRepo
from propmarket.repositories.payment_repo import PaymentRepo
from propmarket.repositories.property_repo import PropertyRepo
from propmarket.services.notification_service import NotificationService
from propmarket.utils.dates import now_utc

logger = logging.getLogger(__name__)

PAYMENT_METHODS = (PAYMENT_POSTVISIT, PAYMENT_PREVISIT)


@dataclass
class BookingRequest:
    property_id: int
    visit_date: date
    visit_time: str
    person1_name: str
    number_of_people: int = 1
    person2_name: Optional[str] = None
    person3_name: Optional[str] = None
    pickup_address: Optional[str] = None
    payment_method: str = PAYMENT_POSTVISIT


@dataclass
class BookingResult:
    booking: Booking
    payment: Optional[dict] = None
    payment_error: Optional[str] = None


class BookingService:
    """
    CREATED --postvisit--> CONFIRMED
    CREATED --razorpay_previsit--> ORDER_OPENED --verified--> PAID_CONFIRMED
    A failed verification leaves the booking as it was so the user can retry.
    """

    def __init__(self, session: AsyncSession, gateway: RazorpayGateway) -> None:
        self.s = session
        self.gateway = gateway
        self.bookings = BookingRepo(session)
        self.payments = PaymentRepo(session)
        self.properties = PropertyRepo(session)
        self.notifications = NotificationService(session)

    async def create_booking(self, user: User, req: BookingRequest) -> BookingResult:
        if req.payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method: {req.payment_method!r}")
        if not 1 <= req.number_of_people <= 3:
            raise ValidationError("number_of_people must be between 1 and 3")
        if not (req.person1_name or "").strip():
            raise ValidationError("person1_name is required")

        prop = await self.properties.get(req.property_id)
        if prop is None:
            raise NotFound("Property not found")

        postvisit = req.payment_method == PAYMENT_POSTVISIT
        booking = await self.bookings.add(
            property_id=prop.id,
            property_title=prop.title,
            property_location=prop.location,
            user_id=user.id,
            user_email=user.email,
            visit_date=req.visit_date,
            visit_time=req.visit_time,
            number_of_people=req.number_of_people,
            person1_name=req.person1_name.strip(),
            person2_name=req.person2_name or None,
            person3_name=req.person3_name or None,
            pickup_address=req.pickup_address or None,
            payment_method=req.payment_method,
            payment_status="pending",
            payment_currency=settings.BASE_CURRENCY,
            status="confirmed" if postvisit else "pending",
        )
        if postvisit:
            await self.notifications.enqueue_site_visit_confirmation(booking)
        # the booking exists regardless of what the gateway does next
        await self.s.commit()
        logger.info(
            "booking_created",
            extra={"user_id": user.id, "booking_id": booking.id, "method": booking.payment_method},
        )

        if postvisit:
            return BookingResult(booking=booking)

        try:
            order = await self.gateway.create_order(
                settings.VISIT_FEE, settings.BASE_CURRENCY, f"booking_{booking.id}"
            )
        except GatewayUnavailable as e:
            logger.warning("booking_order_failed booking_id=%s error=%s", booking.id, e.detail)
            return BookingResult(booking=booking, payment_error="Payment order creation failed")

        booking.razorpay_order_id = order.order_id
        await self.payments.create(
            user_id=user.id,
            amount=settings.VISIT_FEE,
            currency=settings.BASE_CURRENCY,
            provider_order_id=order.order_id,
            purpose=PURPOSE_BOOKING,
        )
        await self.s.commit()
        return BookingResult(
            booking=booking,
            payment={"order_id": order.order_id, "amount": settings.VISIT_FEE, "currency": order.currency},
        )

    async def confirm_payment(
        self,
        user: User,
        booking_id: int,
        *,
        order_id: str,
        payment_id: str,
        signature: str,
        now: datetime | None = None,
    ) -> Booking:
        now = now or now_utc()

        if not self.gateway.verify_payment(order_id, payment_id, signature):
            raise PaymentVerificationFailed()

        booking = await self.bookings.get_owned(booking_id, user.id, for_update=True)
        if booking is None:
            raise NotFound("Booking not found")

        if booking.payment_status == "completed":
            if booking.razorpay_payment_id == payment_id:
                logger.info("booking_payment_replay", extra={"booking_id": booking.id, "order_id": order_id})
                return booking
            raise ValidationError("Booking is already paid")
        if booking.payment_method != PAYMENT_PREVISIT:
            raise ValidationError("Booking does not take prepayment")
        if not booking.razorpay_order_id:
            raise ValidationError("No payment order is open for this booking")
        if booking.razorpay_order_id != order_id:
            raise ValidationError("Order does not belong to this booking")
        if await self.bookings.get_by_payment_id(payment_id) is not None:
            raise ValidationError("Payment already applied to another booking")

        payment = await self.payments.get_by_order_id(order_id, for_update=True)
        if payment is None or payment.purpose != PURPOSE_BOOKING:
            raise ValidationError("Order was not opened for a site visit")
        used = await self.payments.get_by_payment_id(payment_id)
        if used is not None and used.id != payment.id:
            raise ValidationError("Payment already applied to another order")

        booking.payment_status = "completed"
        booking.razorpay_payment_id = payment_id
        booking.payment_amount = settings.VISIT_FEE
        booking.payment_currency = settings.BASE_CURRENCY
        booking.payment_timestamp = now
        booking.status = "confirmed"
        booking.updated_at = now
        await self.payments.mark_paid(payment, payment_id, now)

        await self.notifications.enqueue_site_visit_confirmation(booking)
        await self.s.commit()

        logger.info("booking_paid", extra={"booking_id": booking.id, "order_id": order_id, "user_id": user.id})
        return booking

    async def list_for_user(self, user: User) -> Sequence[tuple[Booking, Optional[str]]]:
        return await self.bookings.list_for_user(user.id)

    async def get_for_user(self, user: User, booking_id: int) -> tuple[Booking, Optional[str]]:
        row = await self.bookings.get_with_image(booking_id, user.id)
        if row is None:
            raise NotFound("Booking not found")
        return row
