"""
order_api/utils/timezone.py — timezone helpers for timestamps and the reminder clock
"""
from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Optional

import pytz
from pytz.tzinfo import BaseTzInfo

UTC = pytz.utc


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def get_timezone(name: str) -> BaseTzInfo:
    """Resolve an IANA zone name. Raises pytz.UnknownTimeZoneError."""
    return pytz.timezone(name)


def next_local_midnight(tz: BaseTzInfo, now: Optional[datetime] = None) -> datetime:
    """Return the first 00:00 in `tz` strictly after `now`."""
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        now = tz.localize(now)
    else:
        now = now.astimezone(tz)
    tomorrow = now.date() + timedelta(days=1)
    # localize() picks the correct UTC offset across DST changes
    return tz.localize(datetime.combine(tomorrow, time.min))


def seconds_until_next_midnight(tz: BaseTzInfo, now: Optional[datetime] = None) -> float:
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        now = tz.localize(now)
    return max((next_local_midnight(tz, now) - now).total_seconds(), 0.0)
