# propmarket/scheduler/jobs.py
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from propmarket.config import settings
from propmarket.services.mailer import Mailer
from propmarket.services.notification_service import NotificationService

log = logging.getLogger(__name__)


async def dispatch_notifications_job(
    session_factory: async_sessionmaker[AsyncSession],
    mailer: Mailer,
) -> int:
    """
    Periodic job: drains the notification outbox.
    Send errors are recorded on the row and retried on a later run; they never
    reach the request that queued the mail.
    """
    async with session_factory() as session:
        svc = NotificationService(session)
        try:
            return await svc.dispatch(
                mailer,
                batch_size=settings.NOTIFY_BATCH_SIZE,
                max_attempts=settings.NOTIFY_MAX_ATTEMPTS,
            )
        except Exception:
            log.exception("notification_dispatch_failed")
            await session.rollback()
            return 0


def setup_scheduler(
    scheduler: AsyncIOScheduler,
    session_factory: async_sessionmaker[AsyncSession],
    mailer: Mailer,
) -> None:
    """Registers the periodic jobs. Called once at startup."""
    scheduler.add_job(
        dispatch_notifications_job,
        trigger="interval",
        seconds=settings.NOTIFY_INTERVAL_SECONDS,
        kwargs={"session_factory": session_factory, "mailer": mailer},
        id="dispatch_notifications_job",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=60,
    )
