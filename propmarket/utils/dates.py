from datetime import datetime, timezone

from dateutil.relativedelta import relativedelta

UTC = timezone.utc


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


def as_utc(dt: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def add_months(dt: datetime, months: int) -> datetime:
    # Jan 31 + 1 month -> Feb 28/29
    return dt + relativedelta(months=months)
