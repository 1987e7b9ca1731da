"""Occurrence status collections: seeding, merging and explicit updates.

Every function returns a new list and leaves its inputs untouched; writers
serialize per schedule through `duewise.engine.locks`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Union

from duewise.models.occurrence import Occurrence, OccurrenceState, OccurrenceStatus
from duewise.recurrence.calendar_utils import as_utc, utc_now
from duewise.recurrence.errors import PeriodNotFound


def seed_statuses(occurrences: Iterable[Occurrence]) -> List[OccurrenceStatus]:
    """One `pending` status per generated occurrence."""
    return [
        OccurrenceStatus(period=occ.period_key, status=OccurrenceState.PENDING, due_at=occ.due_at)
        for occ in occurrences
    ]


def merge_statuses(
    existing: Iterable[OccurrenceStatus],
    fresh: Iterable[Union[Occurrence, OccurrenceStatus]],
) -> List[OccurrenceStatus]:
    """Reconcile recorded statuses with a freshly generated occurrence set.

    - periods in both keep their status, notes and completed_at (due_at follows
      the fresh generation, since a configuration edit may move it);
    - periods only in `fresh` are added as pending;
    - periods only in `existing` fall outside the new range and are dropped.

    The result follows the order of `fresh`, so merging is idempotent.
    """
    by_period = {item.period: item for item in existing}
    merged: List[OccurrenceStatus] = []
    for occ in fresh:
        period = occ.period_key if isinstance(occ, Occurrence) else occ.period
        prior = by_period.get(period)
        if prior is None:
            merged.append(OccurrenceStatus(period=period, status=OccurrenceState.PENDING, due_at=occ.due_at))
        else:
            merged.append(prior.model_copy(update={"due_at": occ.due_at}))
    return merged


def update_occurrence_status(
    store: Iterable[OccurrenceStatus],
    period: str,
    status: Union[OccurrenceState, str],
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[OccurrenceStatus]:
    """Set the status of one period.

    Completing stamps `completed_at` (unless already stamped); any other status
    clears it. `notes=None` keeps the existing notes.

    Raises:
        PeriodNotFound: `period` is not in the store.
        ValueError: `status` is not a valid occurrence state.
    """
    new_status = OccurrenceState(status)
    items = list(store)
    for idx, item in enumerate(items):
        if item.period != period:
            continue
        if new_status == OccurrenceState.COMPLETED:
            completed_at = item.completed_at or as_utc(now or utc_now())
        else:
            completed_at = None
        update = {"status": new_status, "completed_at": completed_at}
        if notes is not None:
            update["notes"] = notes
        items[idx] = item.model_copy(update=update)
        return items
    raise PeriodNotFound(period)
