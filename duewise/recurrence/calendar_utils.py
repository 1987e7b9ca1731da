"""Calendar primitives used by the occurrence generator and the sweeper.

Everything here works on calendar dates and UTC instants. Naive datetimes are
treated as UTC.
"""

from __future__ import annotations

import re
from calendar import monthrange
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Union

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

DateLike = Union[date, datetime]


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month to the month's length (Feb 31 -> Feb 28/29)."""
    return min(day, days_in_month(year, month))


def clamped_date(year: int, month: int, day: int) -> date:
    return date(year, month, clamp_day(year, month, day))


def add_months(start: date, months: int, anchor_day: int) -> date:
    """Move `months` months from `start`, landing on `anchor_day` clamped to the target month."""
    total_month = start.month - 1 + months
    year = start.year + total_month // 12
    month = total_month % 12 + 1
    return clamped_date(year, month, anchor_day)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime (naive values are assumed to already be UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day_utc(value: DateLike) -> datetime:
    """00:00:00.000 UTC of the calendar date of `value`."""
    if isinstance(value, datetime):
        day = as_utc(value).date()
    else:
        day = value
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def end_of_day_utc(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def combine_utc(day: date, at: time) -> datetime:
    return datetime.combine(day, at.replace(tzinfo=None), tzinfo=timezone.utc)


def iter_days(start: date, end_inclusive: date) -> Iterable[date]:
    cur = start
    while cur <= end_inclusive:
        yield cur
        cur = cur + timedelta(days=1)


def _normalize_name(value: str) -> str:
    return "".join(ch for ch in value.strip().lower() if ch.isalpha())


_WEEKDAY_ALIASES = {"weds": 2}


def resolve_weekday(value: Union[str, int]) -> int:
    """Resolve a weekday name, abbreviation or two-letter code to 0 (Monday) .. 6 (Sunday).

    Integers are taken as Python weekday indices.
    """
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValueError(f"Invalid weekday index: {value}")
    token = _normalize_name(value)
    if token in _WEEKDAY_ALIASES:
        return _WEEKDAY_ALIASES[token]
    if len(token) >= 2:
        # "mo", "mon", "monday"; "tues"/"thur"/"thurs" are prefixes too.
        for idx, name in enumerate(WEEKDAY_NAMES):
            if name.lower().startswith(token):
                return idx
    raise ValueError(f"Unknown weekday: {value!r}")


def resolve_month(value: Union[str, int]) -> int:
    """Resolve a month name or three-letter abbreviation to 1..12."""
    if isinstance(value, int):
        if 1 <= value <= 12:
            return value
        raise ValueError(f"Invalid month number: {value}")
    token = _normalize_name(value)
    if len(token) >= 3:
        for idx, name in enumerate(MONTH_NAMES):
            if name.lower().startswith(token):
                return idx + 1
    raise ValueError(f"Unknown month: {value!r}")


def quarter_of(month: int) -> int:
    return (month - 1) // 3 + 1


_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2}))?\s*(?P<ampm>am|pm)?\s*$", re.I)


def parse_time_of_day(value: Union[str, time]) -> time:
    """Parse "17:30", "17:30:00" or "09:30 AM" into a `time`.

    12-hour inputs follow the usual convention (12 AM is midnight, 12 PM is noon).
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    m = _TIME_RE.match(value or "")
    if not m:
        raise ValueError(f"Could not parse time of day: {value!r}")
    hours = int(m.group("h"))
    minutes = int(m.group("m"))
    seconds = int(m.group("s") or "0")
    ampm = (m.group("ampm") or "").lower()
    if ampm:
        if hours < 1 or hours > 12:
            raise ValueError(f"Invalid 12-hour time: {value!r}")
        if hours == 12:
            hours = 0
        if ampm == "pm":
            hours += 12
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(hour=hours, minute=minutes, second=seconds)
