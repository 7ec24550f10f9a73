from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from shared.constants import GATEWAY_TIMEZONE, TIMESTAMP_FORMAT


def utc_now() -> datetime:
    return datetime.now(UTC)


def gateway_timestamp(now: datetime | None = None, tz_name: str = GATEWAY_TIMEZONE) -> str:
    moment = now or utc_now()
    return moment.astimezone(ZoneInfo(tz_name)).strftime(TIMESTAMP_FORMAT)


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Inclusive calendar range as ``[start 00:00, end+1 00:00)`` in UTC."""
    lower = datetime.combine(start, time.min, tzinfo=UTC)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=UTC)
    return lower, upper
