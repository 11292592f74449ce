from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.payment import PURPOSE_SUBSCRIPTION, Payment


class PaymentRepo:
    """Callers own the transaction: methods flush, never commit."""

    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def create(
        self,
        *,
        user_id: int,
        amount: Decimal,
        currency: str,
        provider_order_id: str,
        plan: Optional[str] = None,
        provider: str = "razorpay",
        purpose: str = PURPOSE_SUBSCRIPTION,
    ) -> Payment:
        p = Payment(
            user_id=user_id,
            amount=amount,
            currency=currency,
            plan=plan,
            provider=provider,
            provider_order_id=provider_order_id,
            purpose=purpose,
            status="pending",
        )
        self.s.add(p)
        await self.s.flush()
        return p

    async def get_by_order_id(self, provider_order_id: str, *, for_update: bool = False) -> Optional[Payment]:
        q = select(Payment).where(Payment.provider_order_id == provider_order_id)
        if for_update:
            q = q.with_for_update()
        res = await self.s.execute(q)
        return res.scalar_one_or_none()

    async def get_by_payment_id(self, provider_payment_id: str) -> Optional[Payment]:
        res = await self.s.execute(
            select(Payment).where(Payment.provider_payment_id == provider_payment_id)
        )
        return res.scalar_one_or_none()

    async def mark_paid(self, payment: Payment, provider_payment_id: str, paid_at: datetime) -> Payment:
        payment.status = "paid"
        payment.provider_payment_id = provider_payment_id
        payment.paid_at = paid_at
        await self.s.flush()
        return payment
