"""Task creation factory for duewise.

Centralizes task construction so the API and tests apply the same defaults.
"""

import uuid
from datetime import date, datetime
from typing import Optional, Union

from duewise.models.task import Task, TaskStatus
from duewise.recurrence.calendar_utils import as_utc, end_of_day_utc, start_of_day_utc, utc_now


def _deadline(value: Union[date, datetime]) -> datetime:
    # A bare date means "by the end of that day".
    if isinstance(value, datetime):
        return as_utc(value)
    return end_of_day_utc(value)


def create_task_base(
    title: str,
    end_date: Union[date, datetime],
    start_date: Optional[Union[date, datetime]] = None,
    notes: Optional[str] = None,
    schedule_id: Optional[str] = None,
    status: TaskStatus = TaskStatus.PENDING,
    now: Optional[datetime] = None,
) -> Task:
    """Create a task with a fresh id and timestamps.

    Args:
        title: Task title (required)
        end_date: Deadline; a `date` is taken as the end of that day (UTC)
        start_date: Optional start of the task window
        notes: Task notes or description
        schedule_id: Owning schedule, when the task was raised from one
        status: Initial status (defaults to pending)
        now: Creation instant (defaults to the current UTC time)

    Returns:
        Task object with defaults applied
    """
    now = as_utc(now or utc_now())
    start = None
    if start_date is not None:
        start = as_utc(start_date) if isinstance(start_date, datetime) else start_of_day_utc(start_date)
    return Task(
        id=str(uuid.uuid4()),
        title=title,
        notes=notes,
        schedule_id=schedule_id,
        status=status,
        start_date=start,
        end_date=_deadline(end_date),
        created_at=now,
        updated_at=now,
    )
