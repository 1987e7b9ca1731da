"""Generate concrete occurrences from a frequency definition and a date range.

Generation is pure and fully materialized: the same definition and range always
produce the same, chronologically ordered list of occurrences. Period keys are
canonical per frequency so that regenerating a schedule lines up with the
statuses recorded on an earlier run.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from duewise.models.frequency import (
    DailyFrequency,
    FrequencyDefinition,
    HourlyFrequency,
    MonthlyFrequency,
    NoFrequency,
    OneTimeFrequency,
    QuarterlyFrequency,
    WeeklyFrequency,
    YearlyFrequency,
    parse_frequency,
)
from duewise.models.occurrence import Occurrence
from duewise.recurrence.calendar_utils import (
    MONTH_NAMES,
    as_utc,
    clamped_date,
    combine_utc,
    end_of_day_utc,
    iter_days,
    quarter_of,
    start_of_day_utc,
)
from duewise.recurrence.errors import DuplicatePeriod, InvalidRange

ONE_TIME_PERIOD_KEY = "one-time"

# Horizon used by next_occurrence() when the caller gives no end bound.
DEFAULT_LOOKAHEAD_DAYS = 367

RangeBound = Union[date, datetime, None]


def _start_bound(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return start_of_day_utc(value)


def _end_bound(value: Union[date, datetime]) -> datetime:
    # A bare date covers the whole of that day.
    if isinstance(value, datetime):
        return as_utc(value)
    return end_of_day_utc(value)


def normalize_range(range_start: RangeBound, range_end: RangeBound) -> Tuple[datetime, datetime]:
    """Validate a generation range and convert it to inclusive UTC bounds."""
    if range_start is None or range_end is None:
        raise InvalidRange("Both range_start and range_end are required")
    start = _start_bound(range_start)
    end = _end_bound(range_end)
    if start > end:
        raise InvalidRange(f"range_start ({start.isoformat()}) is after range_end ({end.isoformat()})")
    return start, end


def _in_range(due_at: datetime, start: datetime, end: datetime) -> bool:
    return start <= due_at <= end


def _hourly(freq: HourlyFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    # Anchor on the hour; a mid-hour start skips the anchor itself.
    current = start.replace(minute=0, second=0, microsecond=0)
    step = timedelta(hours=freq.interval_hours)
    while current <= end:
        if current >= start:
            yield Occurrence(period_key=current.strftime("%Y-%m-%d-%H"), due_at=current)
        current = current + step


def _daily(freq: DailyFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    for day in iter_days(start.date(), end.date()):
        due_at = combine_utc(day, freq.time_of_day)
        if _in_range(due_at, start, end):
            yield Occurrence(period_key=day.isoformat(), due_at=due_at)


def _iso_week_key(day: date) -> str:
    iso_year, iso_week, iso_day = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}-{iso_day}"


def _weekly(freq: WeeklyFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    selected = {d.weekday_index for d in freq.days_of_week}
    for day in iter_days(start.date(), end.date()):
        if day.weekday() not in selected:
            continue
        due_at = combine_utc(day, freq.time_of_day)
        if _in_range(due_at, start, end):
            yield Occurrence(period_key=_iso_week_key(day), due_at=due_at)


def _months_between(start: datetime, end: datetime) -> Iterable[Tuple[int, int]]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def _monthly(freq: MonthlyFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    for year, month in _months_between(start, end):
        due_at = combine_utc(clamped_date(year, month, freq.day_of_month), freq.time_of_day)
        if _in_range(due_at, start, end):
            yield Occurrence(period_key=f"{year:04d}-{month:02d}", due_at=due_at)


def _month_set(
    freq: Union[QuarterlyFrequency, YearlyFrequency],
    start: datetime,
    end: datetime,
    key: Callable[[int, int], str],
) -> Iterable[Occurrence]:
    months = sorted(m.number for m in freq.months)
    for year in range(start.year, end.year + 1):
        for month in months:
            due_at = combine_utc(clamped_date(year, month, freq.day_of_month), freq.time_of_day)
            if _in_range(due_at, start, end):
                yield Occurrence(period_key=key(year, month), due_at=due_at)


def _quarterly(freq: QuarterlyFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    return _month_set(freq, start, end, lambda year, month: f"{year:04d}-Q{quarter_of(month)}")


def _yearly(freq: YearlyFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    return _month_set(freq, start, end, lambda year, month: f"{year:04d}-{MONTH_NAMES[month - 1]}")


def _none(freq: NoFrequency, start: datetime, end: datetime) -> Iterable[Occurrence]:
    return iter(())


_GENERATORS: Dict[type, Callable[[Any, datetime, datetime], Iterable[Occurrence]]] = {
    NoFrequency: _none,
    HourlyFrequency: _hourly,
    DailyFrequency: _daily,
    WeeklyFrequency: _weekly,
    MonthlyFrequency: _monthly,
    QuarterlyFrequency: _quarterly,
    YearlyFrequency: _yearly,
}


def _one_time(freq: OneTimeFrequency, range_start: RangeBound) -> List[Occurrence]:
    due = freq.due_date if freq.due_date is not None else range_start
    if due is None:
        raise InvalidRange("One-time schedules need a due_date or a range_start")
    return [Occurrence(period_key=ONE_TIME_PERIOD_KEY, due_at=_start_bound(due))]


def _ensure_unique(occurrences: Iterable[Occurrence]) -> List[Occurrence]:
    seen = set()
    out: List[Occurrence] = []
    for occ in occurrences:
        if occ.period_key in seen:
            raise DuplicatePeriod(occ.period_key)
        seen.add(occ.period_key)
        out.append(occ)
    return out


def generate_occurrences(
    frequency: Union[FrequencyDefinition, dict],
    range_start: RangeBound,
    range_end: RangeBound = None,
) -> List[Occurrence]:
    """Enumerate the occurrences `frequency` implies within [range_start, range_end].

    Date bounds cover whole days (the end date is inclusive); datetime bounds are
    taken as exact UTC instants. One-time definitions yield a single occurrence at
    their explicit due date or at `range_start` and ignore `range_end`.

    Raises:
        InvalidRange: a bound is missing or the range is inverted.
        DuplicatePeriod: the configuration produced the same period key twice.
        InvalidFrequencyConfig: `frequency` was a dict that failed validation.
    """
    if isinstance(frequency, dict):
        frequency = parse_frequency(frequency)

    if isinstance(frequency, OneTimeFrequency):
        return _one_time(frequency, range_start)

    start, end = normalize_range(range_start, range_end)
    generator = _GENERATORS[type(frequency)]
    return _ensure_unique(generator(frequency, start, end))


def next_occurrence(
    frequency: Union[FrequencyDefinition, dict],
    after: datetime,
    until: RangeBound = None,
) -> Optional[Occurrence]:
    """First occurrence strictly after `after`, or None if there is none before `until`."""
    if isinstance(frequency, dict):
        frequency = parse_frequency(frequency)
    after = as_utc(after)
    if isinstance(frequency, OneTimeFrequency):
        occurrences = generate_occurrences(frequency, after)
    else:
        horizon = until if until is not None else after + timedelta(days=DEFAULT_LOOKAHEAD_DAYS)
        if _end_bound(horizon) <= after:
            return None
        occurrences = generate_occurrences(frequency, after, horizon)
    for occ in occurrences:
        if occ.due_at > after:
            return occ
    return None
