# propmarket/web/subscription_routes.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from propmarket.models.user import User
from propmarket.services.subscription_service import SubscriptionService, SubscriptionState
from propmarket.web.deps import get_current_user, get_subscription_service
from propmarket.web.schemas import (
    CreateOrderIn,
    PlanOut,
    SubscriptionActivatedOut,
    SubscriptionOrderOut,
    SubscriptionOut,
    VerifySubscriptionIn,
)

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


def _out(state: SubscriptionState) -> SubscriptionOut:
    return SubscriptionOut(
        isSubscribed=state.is_subscribed,
        expiry=state.expiry,
        plan=state.plan,
        price=state.price,
        subscribedAt=state.subscribed_at,
    )


@router.get("/plans")
async def list_plans() -> dict[str, List[PlanOut]]:
    return {"plans": [PlanOut.model_validate(p) for p in SubscriptionService.plans()]}


@router.post("/create-order", response_model=SubscriptionOrderOut)
async def create_order(
    body: CreateOrderIn,
    user: User = Depends(get_current_user),
    svc: SubscriptionService = Depends(get_subscription_service),
):
    order = await svc.create_order(user, body.plan_id)
    return SubscriptionOrderOut(
        orderId=order.order_id,
        amount=order.amount,
        currency=order.currency,
        plan=order.plan,
        duration=order.duration,
    )


@router.post("/verify-payment", response_model=SubscriptionActivatedOut)
async def verify_payment(
    body: VerifySubscriptionIn,
    user: User = Depends(get_current_user),
    svc: SubscriptionService = Depends(get_subscription_service),
):
    state = await svc.verify_payment(
        user,
        order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
        plan_id=body.plan_id,
    )
    return SubscriptionActivatedOut(message="Subscription activated successfully", subscription=_out(state))


@router.get("/status", response_model=SubscriptionOut)
async def subscription_status(
    user: User = Depends(get_current_user),
    svc: SubscriptionService = Depends(get_subscription_service),
):
    return _out(svc.status(user))
