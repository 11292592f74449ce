from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from propmarket.errors import NotFound, PaymentVerificationFailed, ValidationError
from propmarket.models import Payment
from propmarket.models.booking import PAYMENT_POSTVISIT, PAYMENT_PREVISIT
from propmarket.services.booking_service import BookingRequest, BookingService
from propmarket.tests.conftest import NOW, OrderApi, make_gateway, notifications


def _request(property_id: int, method: str = PAYMENT_POSTVISIT, **kw) -> BookingRequest:
    return BookingRequest(
        property_id=property_id,
        visit_date=kw.pop("visit_date", date(2026, 2, 14)),
        visit_time=kw.pop("visit_time", "11:00"),
        person1_name=kw.pop("person1_name", "Asha"),
        payment_method=method,
        **kw,
    )


@pytest.fixture
def svc(session, gateway):
    return BookingService(session, gateway)


@pytest.fixture
async def listing(make_user, make_property):
    owner = await make_user(user_type="developer")
    return await make_property(owner, image_url="/media/cover.jpg")


async def test_postvisit_is_confirmed_without_payment(svc, session, make_user, listing, order_api):
    user = await make_user()
    result = await svc.create_booking(user, _request(listing.id, number_of_people=2, person2_name="Ravi"))

    b = result.booking
    assert result.payment is None
    assert result.payment_error is None
    assert (b.status, b.payment_status) == ("confirmed", "pending")
    assert (b.property_title, b.property_location) == (listing.title, listing.location)
    assert b.user_email == user.email
    assert order_api.calls == []

    mails = await notifications(session, "site_visit")
    assert [m.recipient for m in mails] == [user.email]


async def test_previsit_opens_order(svc, session, make_user, listing, order_api):
    user = await make_user()
    result = await svc.create_booking(user, _request(listing.id, PAYMENT_PREVISIT))

    assert result.payment == {"order_id": "order_1", "amount": Decimal("300"), "currency": "INR"}
    assert result.booking.razorpay_order_id == "order_1"
    assert result.booking.status == "pending"
    assert order_api.calls[0]["amount"] == 30000
    assert order_api.calls[0]["receipt"] == f"booking_{result.booking.id}"
    assert await notifications(session) == []

    payment = (await session.execute(select(Payment))).scalar_one()
    assert (payment.purpose, payment.plan, payment.amount) == ("booking", None, Decimal("300"))
    assert (payment.provider_order_id, payment.status, payment.user_id) == ("order_1", "pending", user.id)


async def test_gateway_failure_keeps_booking(session, make_user, listing):
    svc = BookingService(session, make_gateway(OrderApi(status=503)))
    user = await make_user()

    result = await svc.create_booking(user, _request(listing.id, PAYMENT_PREVISIT))

    assert result.payment is None
    assert result.payment_error == "Payment order creation failed"
    assert result.booking.id is not None
    assert result.booking.razorpay_order_id is None
    rows = await svc.list_for_user(user)
    assert [b.id for b, _ in rows] == [result.booking.id]


@pytest.mark.parametrize(
    "kw",
    [
        {"number_of_people": 0},
        {"number_of_people": 4},
        {"person1_name": "   "},
    ],
)
async def test_invalid_requests(svc, make_user, listing, kw):
    user = await make_user()
    with pytest.raises(ValidationError):
        await svc.create_booking(user, _request(listing.id, **kw))


async def test_unknown_method_and_property(svc, make_user, listing):
    user = await make_user()
    with pytest.raises(ValidationError):
        await svc.create_booking(user, _request(listing.id, "cash"))
    with pytest.raises(NotFound):
        await svc.create_booking(user, _request(listing.id + 100))


async def _opened(svc, user, listing):
    result = await svc.create_booking(user, _request(listing.id, PAYMENT_PREVISIT))
    return result.booking


async def test_confirm_payment(svc, session, gateway, make_user, listing):
    user = await make_user()
    booking = await _opened(svc, user, listing)
    sig = gateway.sign(booking.razorpay_order_id, "pay_1")

    paid = await svc.confirm_payment(
        user, booking.id, order_id=booking.razorpay_order_id, payment_id="pay_1", signature=sig, now=NOW
    )

    assert (paid.status, paid.payment_status) == ("confirmed", "completed")
    assert paid.razorpay_payment_id == "pay_1"
    assert paid.payment_amount == Decimal("300")
    assert paid.payment_currency == "INR"
    assert paid.payment_timestamp == NOW
    assert len(await notifications(session, "site_visit")) == 1

    payment = (await session.execute(select(Payment))).scalar_one()
    assert (payment.status, payment.provider_payment_id, payment.paid_at) == ("paid", "pay_1", NOW)


async def test_confirm_bad_signature_leaves_booking(svc, session, make_user, listing):
    user = await make_user()
    booking = await _opened(svc, user, listing)

    with pytest.raises(PaymentVerificationFailed):
        await svc.confirm_payment(
            user, booking.id, order_id=booking.razorpay_order_id, payment_id="pay_1", signature="bad"
        )

    await session.refresh(booking)
    assert (booking.status, booking.payment_status) == ("pending", "pending")
    assert booking.razorpay_payment_id is None


async def test_confirm_replay_is_noop(svc, session, gateway, make_user, listing):
    user = await make_user()
    booking = await _opened(svc, user, listing)
    sig = gateway.sign(booking.razorpay_order_id, "pay_1")
    kwargs = dict(order_id=booking.razorpay_order_id, payment_id="pay_1", signature=sig)

    await svc.confirm_payment(user, booking.id, now=NOW, **kwargs)
    again = await svc.confirm_payment(user, booking.id, now=NOW + timedelta(hours=1), **kwargs)

    assert again.payment_status == "completed"
    assert len(await notifications(session, "site_visit")) == 1


async def test_confirm_second_payment_rejected(svc, gateway, make_user, listing):
    user = await make_user()
    booking = await _opened(svc, user, listing)
    order_id = booking.razorpay_order_id

    await svc.confirm_payment(
        user, booking.id, order_id=order_id, payment_id="pay_1", signature=gateway.sign(order_id, "pay_1")
    )
    with pytest.raises(ValidationError):
        await svc.confirm_payment(
            user, booking.id, order_id=order_id, payment_id="pay_2", signature=gateway.sign(order_id, "pay_2")
        )


async def test_confirm_wrong_order(svc, gateway, make_user, listing):
    user = await make_user()
    booking = await _opened(svc, user, listing)
    with pytest.raises(ValidationError):
        await svc.confirm_payment(
            user, booking.id, order_id="order_other", payment_id="pay_1",
            signature=gateway.sign("order_other", "pay_1"),
        )


async def test_confirm_postvisit_booking_rejected(svc, gateway, make_user, listing):
    user = await make_user()
    booking = (await svc.create_booking(user, _request(listing.id))).booking
    with pytest.raises(ValidationError):
        await svc.confirm_payment(
            user, booking.id, order_id="order_1", payment_id="pay_1", signature=gateway.sign("order_1", "pay_1")
        )


async def test_confirm_other_users_booking_not_found(svc, gateway, make_user, listing):
    owner = await make_user()
    stranger = await make_user()
    booking = await _opened(svc, owner, listing)
    order_id = booking.razorpay_order_id

    with pytest.raises(NotFound):
        await svc.confirm_payment(
            stranger, booking.id, order_id=order_id, payment_id="pay_1",
            signature=gateway.sign(order_id, "pay_1"),
        )


async def test_listing_carries_property_image(svc, make_user, listing):
    user = await make_user()
    first = (await svc.create_booking(user, _request(listing.id))).booking
    second = (await svc.create_booking(user, _request(listing.id, visit_time="15:00"))).booking

    rows = await svc.list_for_user(user)
    assert [b.id for b, _ in rows] == [second.id, first.id]
    assert {img for _, img in rows} == {"/media/cover.jpg"}

    booking, image = await svc.get_for_user(user, first.id)
    assert booking.id == first.id
    assert image == "/media/cover.jpg"

    stranger = await make_user()
    with pytest.raises(NotFound):
        await svc.get_for_user(stranger, first.id)
