# hrm/utils/periods.py
"""
Week and month arithmetic in the deployment's civil timezone.

A week is identified by its Friday (``YYYY-MM-DD``); a month by ``YYYY-MM``.
Marking for a week closes at Friday 23:59:59 local time.
"""
from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from hrm.config import settings
from hrm.models.enums import PeriodStatus

FRIDAY = 4  # date.weekday()


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.HRM_TIMEZONE)


def local_now() -> datetime:
    return datetime.now(local_tz())


def to_local(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=local_tz())
    return moment.astimezone(local_tz())


def current_friday(now: Optional[datetime] = None) -> date:
    """Today if it is Friday, otherwise the most recent Friday."""
    today = to_local(now or local_now()).date()
    return today - timedelta(days=(today.weekday() - FRIDAY) % 7)


def week_key_for(friday: date) -> str:
    return friday.isoformat()


def current_week_key(now: Optional[datetime] = None) -> str:
    return week_key_for(current_friday(now))


def parse_week_key(week_key: str) -> date:
    """Parse a week key and insist that it names a Friday."""
    try:
        day = date.fromisoformat(week_key)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid week key {week_key!r}, expected YYYY-MM-DD")
    if day.weekday() != FRIDAY:
        raise ValueError(f"Week key {week_key} is not a Friday")
    return day


def week_cutoff(friday: date) -> datetime:
    return datetime.combine(friday, time(23, 59, 59), tzinfo=local_tz())


def is_past_cutoff(friday: date, now: Optional[datetime] = None) -> bool:
    return to_local(now or local_now()) > week_cutoff(friday)


def is_week_locked(status: str, friday: date, unlocked: bool, now: Optional[datetime] = None) -> bool:
    """
    Lock state is derived on every read: a stored LOCKED always wins, and a
    week past its cutoff is locked unless a super admin re-opened it.
    """
    if status == PeriodStatus.LOCKED:
        return True
    if unlocked:
        return False
    return is_past_cutoff(friday, now)


def month_key_for(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def current_month_key(now: Optional[datetime] = None) -> str:
    return month_key_for(to_local(now or local_now()).date())


def parse_month_key(month_key: str) -> Tuple[int, int]:
    try:
        year_s, month_s = month_key.split("-")
        year, month = int(year_s), int(month_s)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month key {month_key!r}, expected YYYY-MM")
    if len(year_s) != 4 or len(month_s) != 2 or not 1 <= month <= 12:
        raise ValueError(f"Invalid month key {month_key!r}, expected YYYY-MM")
    return year, month


def month_date_range(month_key: str) -> Tuple[date, date]:
    year, month = parse_month_key(month_key)
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def previous_month_key(month_key: str) -> str:
    start, _ = month_date_range(month_key)
    return month_key_for(start - timedelta(days=1))


def friday_week_keys_for_month(month_key: str) -> List[str]:
    start, end = month_date_range(month_key)
    first = start + timedelta(days=(FRIDAY - start.weekday()) % 7)
    keys = []
    current = first
    while current <= end:
        keys.append(week_key_for(current))
        current += timedelta(days=7)
    return keys


def week_label(week_key: str) -> str:
    """'Week-N' position of the Friday within its month."""
    friday = parse_week_key(week_key)
    keys = friday_week_keys_for_month(month_key_for(friday))
    return f"Week-{keys.index(week_key) + 1}"
