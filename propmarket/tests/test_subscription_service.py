from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from propmarket.errors import InvalidPlan, PaymentVerificationFailed, Unauthorized, ValidationError
from propmarket.models import Payment
from propmarket.services.subscription_service import (
    PLANS,
    SubscriptionService,
    get_plan,
    is_eligible,
    next_expiry,
)
from propmarket.tests.conftest import NOW, notifications
from propmarket.utils.dates import add_months, as_utc


@pytest.fixture
def svc(session, gateway):
    return SubscriptionService(session, gateway)


def test_plan_catalogue():
    assert [(p.id, p.months, p.price) for p in PLANS.values()] == [
        ("1_month", 1, Decimal("500")),
        ("6_months", 6, Decimal("2500")),
        ("12_months", 12, Decimal("4500")),
    ]
    with pytest.raises(InvalidPlan):
        get_plan("2_months")
    with pytest.raises(InvalidPlan):
        get_plan(None)


def test_month_end_is_clamped():
    assert add_months(NOW, 1) == datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc)


def test_next_expiry_extends_from_future_expiry():
    current = NOW + timedelta(days=10)
    assert next_expiry(current, PLANS["6_months"], NOW) == add_months(current, 6)


def test_next_expiry_restarts_after_lapse_or_null():
    assert next_expiry(NOW - timedelta(days=5), PLANS["1_month"], NOW) == add_months(NOW, 1)
    assert next_expiry(None, PLANS["12_months"], NOW) == add_months(NOW, 12)
    # expiry exactly now counts as lapsed
    assert next_expiry(NOW, PLANS["1_month"], NOW) == add_months(NOW, 1)


async def test_eligibility(make_user):
    never = await make_user()
    active = await make_user(is_subscribed=True, subscription_expiry=NOW + timedelta(seconds=1))
    at_boundary = await make_user(is_subscribed=True, subscription_expiry=NOW)
    unlimited = await make_user(is_subscribed=True, subscription_expiry=None)

    assert not is_eligible(never, NOW)
    assert is_eligible(active, NOW)
    assert not is_eligible(at_boundary, NOW)
    assert is_eligible(unlimited, NOW)


async def test_invalid_plan_rejected_before_gateway(svc, make_user, order_api):
    user = await make_user()
    with pytest.raises(InvalidPlan):
        await svc.create_order(user, "lifetime")
    assert order_api.calls == []


async def test_create_order_records_pending_payment(svc, session, make_user, order_api):
    user = await make_user()
    order = await svc.create_order(user, "6_months")

    assert order.order_id == "order_1"
    assert order.amount == Decimal("2500")
    assert order.duration == 6
    assert order_api.calls[0]["amount"] == 250000
    assert order_api.calls[0]["receipt"].startswith(f"subscription_{user.id}_")

    payment = (await session.execute(select(Payment))).scalar_one()
    assert (payment.plan, payment.status, payment.user_id) == ("6_months", "pending", user.id)


async def test_first_activation(svc, session, make_user):
    user = await make_user()
    state = await svc.activate_or_extend(user.id, "1_month", now=NOW)

    assert state.is_subscribed
    assert state.expiry == datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc)
    assert state.plan == "1_month"
    assert state.price == Decimal("500")
    assert state.subscribed_at == NOW

    mails = await notifications(session, "subscription")
    assert len(mails) == 1
    assert mails[0].recipient == user.email


async def test_renewal_before_expiry_stacks(svc, make_user):
    expiry = NOW + timedelta(days=10)
    first_sub = NOW - timedelta(days=20)
    user = await make_user(is_subscribed=True, subscription_expiry=expiry, subscribed_at=first_sub)

    state = await svc.activate_or_extend(user.id, "6_months", now=NOW)

    assert state.expiry == add_months(expiry, 6)
    assert state.subscribed_at == first_sub


async def test_renewal_after_lapse_starts_from_now(svc, make_user):
    user = await make_user(is_subscribed=True, subscription_expiry=NOW - timedelta(days=5))
    state = await svc.activate_or_extend(user.id, "12_months", now=NOW)
    assert state.expiry == add_months(NOW, 12)


async def test_two_renewals_stack(svc, make_user):
    user = await make_user()
    await svc.activate_or_extend(user.id, "1_month", now=NOW)
    state = await svc.activate_or_extend(user.id, "1_month", now=NOW + timedelta(hours=1))
    assert state.expiry == add_months(add_months(NOW, 1), 1)


async def test_verify_payment_activates_and_marks_paid(svc, session, gateway, make_user):
    user = await make_user()
    order = await svc.create_order(user, "1_month")
    sig = gateway.sign(order.order_id, "pay_1")

    state = await svc.verify_payment(
        user, order_id=order.order_id, payment_id="pay_1", signature=sig, now=NOW
    )

    assert state.is_subscribed
    assert state.expiry == add_months(NOW, 1)
    payment = (await session.execute(select(Payment))).scalar_one()
    assert payment.status == "paid"
    assert payment.provider_payment_id == "pay_1"


async def test_verify_payment_replay_is_noop(svc, session, gateway, make_user):
    user = await make_user()
    order = await svc.create_order(user, "1_month")
    sig = gateway.sign(order.order_id, "pay_1")
    kwargs = dict(order_id=order.order_id, payment_id="pay_1", signature=sig)

    first = await svc.verify_payment(user, now=NOW, **kwargs)
    again = await svc.verify_payment(user, now=NOW + timedelta(minutes=5), **kwargs)

    assert as_utc(again.expiry) == first.expiry
    assert len(await notifications(session, "subscription")) == 1


async def test_verify_payment_bad_signature_changes_nothing(svc, session, gateway, make_user):
    user = await make_user()
    order = await svc.create_order(user, "1_month")

    with pytest.raises(PaymentVerificationFailed):
        await svc.verify_payment(user, order_id=order.order_id, payment_id="pay_1", signature="0" * 64)

    await session.refresh(user)
    assert not user.is_subscribed
    assert user.subscription_expiry is None
    assert await notifications(session) == []


async def test_verify_payment_uses_ordered_plan(svc, gateway, make_user):
    user = await make_user()
    order = await svc.create_order(user, "1_month")
    sig = gateway.sign(order.order_id, "pay_1")

    with pytest.raises(ValidationError):
        await svc.verify_payment(
            user, order_id=order.order_id, payment_id="pay_1", signature=sig, plan_id="12_months"
        )


async def test_verify_payment_rejects_foreign_order(svc, gateway, make_user):
    owner = await make_user()
    other = await make_user()
    order = await svc.create_order(owner, "1_month")
    sig = gateway.sign(order.order_id, "pay_1")

    with pytest.raises(Unauthorized):
        await svc.verify_payment(other, order_id=order.order_id, payment_id="pay_1", signature=sig)


async def test_verify_unknown_order_rejected(svc, session, gateway, make_user):
    user = await make_user()
    sig = gateway.sign("order_elsewhere", "pay_9")

    with pytest.raises(ValidationError):
        await svc.verify_payment(
            user, order_id="order_elsewhere", payment_id="pay_9", signature=sig, plan_id="6_months", now=NOW
        )

    await session.refresh(user)
    assert not user.is_subscribed
    assert (await session.execute(select(Payment))).scalars().all() == []
