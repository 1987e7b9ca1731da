"""Data models for duewise."""

from duewise.models.frequency import (
    DailyFrequency,
    FrequencyDefinition,
    FrequencyType,
    HourlyFrequency,
    Month,
    MonthlyFrequency,
    NoFrequency,
    OneTimeFrequency,
    QuarterlyFrequency,
    Weekday,
    WeeklyFrequency,
    YearlyFrequency,
    dump_frequency,
    parse_frequency,
)
from duewise.models.occurrence import Occurrence, OccurrenceState, OccurrenceStatus
from duewise.models.schedule import Schedule
from duewise.models.task import TERMINAL_TASK_STATUSES, Task, TaskStatus

__all__ = [
    "DailyFrequency",
    "FrequencyDefinition",
    "FrequencyType",
    "HourlyFrequency",
    "Month",
    "MonthlyFrequency",
    "NoFrequency",
    "OneTimeFrequency",
    "QuarterlyFrequency",
    "Weekday",
    "WeeklyFrequency",
    "YearlyFrequency",
    "dump_frequency",
    "parse_frequency",
    "Occurrence",
    "OccurrenceState",
    "OccurrenceStatus",
    "Schedule",
    "TERMINAL_TASK_STATUSES",
    "Task",
    "TaskStatus",
]
