"""Schedule lifecycle: build, regenerate and apply explicit occurrence updates.

These functions are pure: they take a Schedule (or its ingredients) and return a
new Schedule whose `status` has been re-derived from its occurrences. Persisting
the result, and holding the entity lock while doing so, is the caller's job
(see `duewise.recurrence.materialize`).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Tuple, Union

from duewise.engine.aggregate import derive_aggregate_status
from duewise.engine.status_store import merge_statuses, seed_statuses, update_occurrence_status
from duewise.models.frequency import FrequencyDefinition, parse_frequency
from duewise.models.occurrence import OccurrenceState
from duewise.models.schedule import Schedule
from duewise.recurrence.calendar_utils import DateLike, as_utc, utc_now
from duewise.recurrence.financial_year import default_range
from duewise.recurrence.generate import generate_occurrences


def resolve_range(
    start_date: Optional[date],
    end_date: Optional[date],
    today: Optional[DateLike] = None,
) -> Tuple[date, date]:
    """Fill missing range bounds from the financial year containing `today`."""
    if start_date is not None and end_date is not None:
        return start_date, end_date
    fy_start, fy_end = default_range(today or utc_now())
    return start_date or fy_start, end_date or fy_end


def build_schedule(
    title: str,
    frequency: Union[FrequencyDefinition, dict],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[DateLike] = None,
    id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Schedule:
    """Create a schedule with every generated occurrence seeded as pending.

    Raises:
        InvalidFrequencyConfig: `frequency` is not a valid definition.
        InvalidRange: the resolved range is inverted.
        DuplicatePeriod: the configuration yields a repeated period key.
    """
    freq = parse_frequency(frequency)
    start, end = resolve_range(start_date, end_date, today)
    statuses = seed_statuses(generate_occurrences(freq, start, end))
    now = as_utc(now or utc_now())
    return Schedule(
        id=id or str(uuid.uuid4()),
        title=title,
        frequency=freq,
        start_date=start,
        end_date=end,
        occurrences=statuses,
        status=derive_aggregate_status(statuses),
        created_at=now,
        updated_at=now,
    )


def regenerate_schedule(
    schedule: Schedule,
    frequency: Optional[Union[FrequencyDefinition, dict]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    title: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Schedule:
    """Regenerate after a configuration or range edit, keeping recorded statuses.

    Arguments left as None keep the schedule's current value.
    """
    freq = parse_frequency(frequency) if frequency is not None else schedule.frequency
    start = start_date or schedule.start_date
    end = end_date or schedule.end_date
    fresh = generate_occurrences(freq, start, end)
    merged = merge_statuses(schedule.occurrences, fresh)
    return schedule.model_copy(
        update={
            "title": title or schedule.title,
            "frequency": freq,
            "start_date": start,
            "end_date": end,
            "occurrences": merged,
            "status": derive_aggregate_status(merged),
            "updated_at": as_utc(now or utc_now()),
        }
    )


def apply_occurrence_update(
    schedule: Schedule,
    period: str,
    status: Union[OccurrenceState, str],
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Schedule:
    """Set one occurrence's status and re-derive the schedule status.

    Raises:
        PeriodNotFound: the schedule has no occurrence for `period`.
    """
    now = as_utc(now or utc_now())
    items = update_occurrence_status(schedule.occurrences, period, status, notes=notes, now=now)
    return schedule.model_copy(
        update={
            "occurrences": items,
            "status": derive_aggregate_status(items),
            "updated_at": now,
        }
    )
