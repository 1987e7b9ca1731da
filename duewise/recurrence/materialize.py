"""Materialize schedules into stored occurrence statuses.

Session-bound entry points for the API: each one takes the schedule's entity
lock, re-reads the row (locked FOR UPDATE where supported), applies a pure
engine function and writes the result back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from duewise.database.schedule_repository import ScheduleRepository
from duewise.engine.locks import EntityLocks, entity_locks, schedule_key
from duewise.engine.schedules import apply_occurrence_update, build_schedule, regenerate_schedule
from duewise.models.frequency import FrequencyDefinition
from duewise.models.occurrence import OccurrenceState
from duewise.models.schedule import Schedule
from duewise.recurrence.calendar_utils import DateLike

logger = logging.getLogger(__name__)


def materialize_schedule(
    db: Session,
    *,
    title: str,
    frequency: Union[FrequencyDefinition, dict],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[DateLike] = None,
    now: Optional[datetime] = None,
) -> Schedule:
    """Create and store a schedule with all of its occurrences seeded as pending."""
    schedule = build_schedule(
        title,
        frequency,
        start_date=start_date,
        end_date=end_date,
        today=today,
        now=now,
    )
    created = ScheduleRepository(db).create(schedule)
    logger.info(
        f"Materialized schedule {created.id} ({created.frequency.type}): "
        f"{len(created.occurrences)} occurrences {created.start_date}..{created.end_date}"
    )
    return created


def rematerialize_schedule(
    db: Session,
    schedule_id: str,
    *,
    frequency: Optional[Union[FrequencyDefinition, dict]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    title: Optional[str] = None,
    now: Optional[datetime] = None,
    locks: EntityLocks = entity_locks,
) -> Optional[Schedule]:
    """Regenerate a stored schedule, keeping statuses of periods that survive.

    Returns None when the schedule does not exist.
    """
    repo = ScheduleRepository(db)
    with locks.hold(schedule_key(schedule_id)):
        current = repo.get_for_update(schedule_id)
        if current is None:
            return None
        try:
            updated = regenerate_schedule(
                current,
                frequency=frequency,
                start_date=start_date,
                end_date=end_date,
                title=title,
                now=now,
            )
        except Exception:
            db.rollback()
            raise
        saved = repo.update(updated)
    logger.info(f"Regenerated schedule {schedule_id}: {len(saved.occurrences)} occurrences")
    return saved


def record_occurrence_status(
    db: Session,
    schedule_id: str,
    period: str,
    status: Union[OccurrenceState, str],
    *,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    locks: EntityLocks = entity_locks,
) -> Optional[Schedule]:
    """Apply an explicit status update to one occurrence of a stored schedule.

    Returns None when the schedule does not exist.

    Raises:
        PeriodNotFound: the schedule has no occurrence for `period`.
    """
    repo = ScheduleRepository(db)
    with locks.hold(schedule_key(schedule_id)):
        current = repo.get_for_update(schedule_id)
        if current is None:
            return None
        try:
            updated = apply_occurrence_update(current, period, status, notes=notes, now=now)
        except Exception:
            # Release the row lock.
            db.rollback()
            raise
        return repo.update(updated)
