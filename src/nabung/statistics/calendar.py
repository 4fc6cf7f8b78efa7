"""Calendar-day helpers in the reference timezone (UTC+7 by default).

Timestamps are stored in UTC; streaks and daily totals are counted in local
calendar days.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from nabung.config import get_settings


def reference_tz() -> timezone:
    """Fixed-offset timezone used for calendar days."""
    return timezone(timedelta(hours=get_settings().timezone_offset_hours))


def local_date(dt: datetime) -> date:
    """Calendar date of a timestamp. Naive values are treated as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(reference_tz()).date()


def local_today(now: datetime | None = None) -> date:
    """Today's calendar date."""
    if now is None:
        now = datetime.now(timezone.utc)
    return local_date(now)


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [start, end) covering one local calendar day."""
    start = datetime.combine(day, time.min, tzinfo=reference_tz()).astimezone(timezone.utc)
    return start, start + timedelta(days=1)
