from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_local(now: datetime, tz_name: Optional[str]) -> datetime:
    """Convert an aware datetime to the display time zone; naive values are assumed local already.

    An unknown zone name falls back to UTC.
    """
    if now.tzinfo is None or not tz_name:
        return now
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown time zone %r, evaluating schedules in UTC", tz_name)
        return now.astimezone(timezone.utc)
    return now.astimezone(zone)


def day_of_week(moment: datetime) -> int:
    # datetime.weekday() is Monday=0; schedules use Sunday=0
    return (moment.weekday() + 1) % 7


def time_of_day(moment: datetime) -> str:
    return moment.strftime("%H:%M")
