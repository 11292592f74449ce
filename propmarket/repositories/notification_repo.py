from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.notification import Notification


class NotificationRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def enqueue(self, *, kind: str, recipient: str, subject: str, html: str) -> Notification:
        n = Notification(kind=kind, recipient=recipient, subject=subject, html=html, status="pending")
        self.s.add(n)
        await self.s.flush()
        return n

    async def due(self, *, max_attempts: int, limit: int) -> Sequence[Notification]:
        res = await self.s.execute(
            select(Notification)
            .where(Notification.status.in_(("pending", "failed")))
            .where(Notification.attempts < max_attempts)
            .order_by(Notification.id)
            .limit(limit)
        )
        return res.scalars().all()

    async def mark_sent(self, n: Notification, at: datetime) -> None:
        n.status = "sent"
        n.sent_at = at
        n.attempts += 1
        n.last_error = None
        await self.s.flush()

    async def mark_failed(self, n: Notification, error: str) -> None:
        n.status = "failed"
        n.attempts += 1
        n.last_error = error[:1000]
        await self.s.flush()
