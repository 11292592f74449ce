# propmarket/web/booking_routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from propmarket.models.booking import Booking
from propmarket.models.user import User
from propmarket.services.booking_service import BookingRequest, BookingService
from propmarket.web.deps import get_booking_service, get_current_user
from propmarket.web.schemas import (
    BookingCreatedOut,
    BookingEnvelope,
    BookingIn,
    BookingListOut,
    BookingOut,
    BookingVerifiedOut,
    PaymentOrderOut,
    VerifyBookingIn,
)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _out(b: Booking, image: Optional[str] = None) -> BookingOut:
    return BookingOut.model_validate(b).model_copy(update={"property_image": image})


@router.post("", status_code=201, response_model=BookingCreatedOut)
async def create_booking(
    body: BookingIn,
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    result = await svc.create_booking(user, BookingRequest(**body.model_dump()))
    payment = None
    if result.payment:
        payment = PaymentOrderOut(
            orderId=result.payment["order_id"],
            amount=result.payment["amount"],
            currency=result.payment["currency"],
        )
    return BookingCreatedOut(booking=_out(result.booking), payment=payment, error=result.payment_error)


@router.post("/verify-payment", response_model=BookingVerifiedOut)
async def verify_payment(
    body: VerifyBookingIn,
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    booking = await svc.confirm_payment(
        user,
        body.booking_id,
        order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
    )
    return BookingVerifiedOut(booking=_out(booking), message="Payment verified successfully")


@router.get("/my-bookings", response_model=BookingListOut)
async def my_bookings(
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    rows = await svc.list_for_user(user)
    return BookingListOut(bookings=[_out(b, img) for b, img in rows])


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    booking, image = await svc.get_for_user(user, booking_id)
    return BookingEnvelope(booking=_out(booking, image))
