"""Frequency definitions for duewise.

A frequency is a closed tagged union: every variant carries only the
configuration it needs, discriminated by `type`. Use `parse_frequency` to turn
untrusted input into a definition; it raises `InvalidFrequencyConfig` with the
offending field instead of a raw pydantic error.
"""

from __future__ import annotations

from datetime import date, time
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from duewise.recurrence.calendar_utils import (
    MONTH_NAMES,
    WEEKDAY_NAMES,
    parse_time_of_day,
    resolve_month,
    resolve_weekday,
)
from duewise.recurrence.errors import InvalidFrequencyConfig


class FrequencyType(str, Enum):
    NONE = "none"
    ONE_TIME = "one_time"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @property
    def weekday_index(self) -> int:
        """Python weekday index (Monday=0 ... Sunday=6)."""
        return WEEKDAY_NAMES.index(self.value)


class Month(str, Enum):
    JANUARY = "January"
    FEBRUARY = "February"
    MARCH = "March"
    APRIL = "April"
    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUGUST = "August"
    SEPTEMBER = "September"
    OCTOBER = "October"
    NOVEMBER = "November"
    DECEMBER = "December"

    @property
    def number(self) -> int:
        return MONTH_NAMES.index(self.value) + 1


def _as_list(v: Any) -> List[Any]:
    if isinstance(v, (str, int)):
        return [v]
    return list(v)


class _TimedFrequency(BaseModel):
    time_of_day: time = Field(time(0, 0), description="Due time on each occurrence day (UTC)")

    @field_validator("time_of_day", mode="before")
    @classmethod
    def _parse_time_of_day(cls, v):
        if v is None:
            return time(0, 0)
        return parse_time_of_day(v)


class NoFrequency(BaseModel):
    type: Literal["none"] = "none"


class OneTimeFrequency(BaseModel):
    type: Literal["one_time"] = "one_time"
    due_date: Optional[date] = Field(None, description="Explicit due date; defaults to the range start")


class HourlyFrequency(BaseModel):
    type: Literal["hourly"] = "hourly"
    interval_hours: int = Field(1, ge=1, le=24)


class DailyFrequency(_TimedFrequency):
    type: Literal["daily"] = "daily"


class WeeklyFrequency(_TimedFrequency):
    type: Literal["weekly"] = "weekly"
    days_of_week: List[Weekday] = Field(..., min_length=1)

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _resolve_days(cls, v):
        if v is None:
            return v
        indices = sorted({resolve_weekday(day) for day in _as_list(v)})
        return [Weekday(WEEKDAY_NAMES[i]) for i in indices]


class MonthlyFrequency(_TimedFrequency):
    type: Literal["monthly"] = "monthly"
    day_of_month: int = Field(..., ge=1, le=31)


class _MonthSetFrequency(_TimedFrequency):
    months: List[Month] = Field(..., min_length=1)
    day_of_month: int = Field(..., ge=1, le=31)

    @field_validator("months", mode="before")
    @classmethod
    def _resolve_months(cls, v):
        if v is None:
            return v
        # Deduplicate and sort chronologically within the year.
        numbers = sorted({resolve_month(m) for m in _as_list(v)})
        return [Month(MONTH_NAMES[n - 1]) for n in numbers]


class QuarterlyFrequency(_MonthSetFrequency):
    """Usually one month per calendar quarter (e.g. Jan/Apr/Jul/Oct)."""

    type: Literal["quarterly"] = "quarterly"


class YearlyFrequency(_MonthSetFrequency):
    """Usually a single month; several months yield one occurrence each per year."""

    type: Literal["yearly"] = "yearly"


FrequencyDefinition = Annotated[
    Union[
        NoFrequency,
        OneTimeFrequency,
        HourlyFrequency,
        DailyFrequency,
        WeeklyFrequency,
        MonthlyFrequency,
        QuarterlyFrequency,
        YearlyFrequency,
    ],
    Field(discriminator="type"),
]

_FREQUENCY_ADAPTER = TypeAdapter(FrequencyDefinition)
_TYPE_TAGS = {t.value for t in FrequencyType}


def _error_field(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ())]
    # Discriminated unions prefix the location with the variant tag.
    if loc and loc[0] in _TYPE_TAGS:
        loc = loc[1:]
    return ".".join(loc) if loc else "type"


def parse_frequency(data: Any) -> FrequencyDefinition:
    """Validate `data` (a dict or an existing definition) into a FrequencyDefinition."""
    if isinstance(data, BaseModel) and getattr(data, "type", None) in _TYPE_TAGS:
        data = data.model_dump()
    try:
        return _FREQUENCY_ADAPTER.validate_python(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = _error_field(first)
        reason = first.get("msg", "invalid value")
        raise InvalidFrequencyConfig(f"{field}: {reason}", field=field, reason=reason) from e


def dump_frequency(frequency: FrequencyDefinition) -> dict:
    """JSON-safe dict for persistence."""
    return frequency.model_dump(mode="json")
