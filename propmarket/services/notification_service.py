# propmarket/services/notification_service.py
from __future__ import annotations

import html as _html
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.models.booking import Booking
from propmarket.repositories.notification_repo import NotificationRepo
from propmarket.services.mailer import Mailer
from propmarket.utils.dates import now_utc

logger = logging.getLogger(__name__)

_WRAP = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">{body}</div>'
_SIGN = "<p>Best regards,<br>Bada Builder Team</p>"


def _e(value) -> str:
    return _html.escape("" if value is None else str(value))


def subscription_email(plan: str, price: Decimal, expiry: datetime | None) -> tuple[str, str]:
    expiry_text = expiry.strftime("%d %b %Y") if expiry else "no expiry"
    body = (
        "<h2>Subscription Confirmed</h2>"
        "<p>Hello,</p>"
        "<p>Your subscription has been activated:</p>"
        "<ul>"
        f"<li><strong>Plan:</strong> {_e(plan)}</li>"
        f"<li><strong>Amount:</strong> &#8377;{_e(price)}</li>"
        f"<li><strong>Expiry Date:</strong> {_e(expiry_text)}</li>"
        "</ul>"
        "<p>You can now post properties on our platform!</p>"
        f"{_SIGN}"
    )
    return "Subscription Confirmed", _WRAP.format(body=body)


def site_visit_email(b: Booking) -> tuple[str, str]:
    body = (
        "<h2>Site Visit Booking Confirmed</h2>"
        "<p>Hello,</p>"
        "<p>Your site visit has been confirmed:</p>"
        "<ul>"
        f"<li><strong>Property:</strong> {_e(b.property_title)}</li>"
        f"<li><strong>Location:</strong> {_e(b.property_location)}</li>"
        f"<li><strong>Date:</strong> {_e(b.visit_date)}</li>"
        f"<li><strong>Time:</strong> {_e(b.visit_time)}</li>"
        f"<li><strong>Number of People:</strong> {_e(b.number_of_people)}</li>"
        "</ul>"
        "<p>We look forward to seeing you!</p>"
        f"{_SIGN}"
    )
    return "Site Visit Booking Confirmed", _WRAP.format(body=body)


class NotificationService:
    """
    Outbox for transactional email.
    enqueue_* only add a row to the caller's session, so the mail intent is
    committed (or rolled back) together with the state change that caused it.
    dispatch() is run by the scheduler and never touches business rows.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.s = session
        self.repo = NotificationRepo(session)

    async def enqueue_subscription_confirmation(
        self, email: str, *, plan: str, price: Decimal, expiry: datetime | None
    ) -> None:
        subject, body = subscription_email(plan, price, expiry)
        await self.repo.enqueue(kind="subscription", recipient=email, subject=subject, html=body)

    async def enqueue_site_visit_confirmation(self, booking: Booking) -> None:
        subject, body = site_visit_email(booking)
        await self.repo.enqueue(kind="site_visit", recipient=booking.user_email, subject=subject, html=body)

    async def dispatch(self, mailer: Mailer, *, batch_size: int = 20, max_attempts: int = 5) -> int:
        """Sends due notifications. Returns how many went out."""
        sent = 0
        for n in await self.repo.due(max_attempts=max_attempts, limit=batch_size):
            try:
                await mailer.send(n.recipient, n.subject, n.html)
            except Exception as e:
                logger.warning(
                    "notification_failed id=%s kind=%s attempt=%s error=%r",
                    n.id, n.kind, n.attempts + 1, e,
                )
                await self.repo.mark_failed(n, repr(e))
            else:
                await self.repo.mark_sent(n, now_utc())
                sent += 1
            # one commit per row: a later failure must not resend earlier mail
            await self.s.commit()
        if sent:
            logger.info("notifications_sent count=%s", sent)
        return sent
