"""Reconciliation sweep: age pending/delayed statuses against the current date.

The sweep only ever moves items between `pending` and `delayed`; explicit
transitions to `ongoing`, `completed` or `cancelled` are never touched, so a
sweep racing an explicit update cannot undo it. Entities are processed one at a
time under their own lock, and a failure on one is reported without stopping
the rest.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Tuple

from pydantic import BaseModel, Field

from duewise.engine.aggregate import derive_aggregate_status
from duewise.engine.locks import EntityLocks, entity_locks, schedule_key, task_key
from duewise.models.occurrence import OccurrenceState, OccurrenceStatus
from duewise.models.schedule import Schedule
from duewise.models.task import Task, TaskStatus
from duewise.recurrence.calendar_utils import as_utc, start_of_day_utc, utc_now
from duewise.recurrence.errors import SweepAbortedError

logger = logging.getLogger(__name__)


class SweepFailure(BaseModel):
    entity_id: str
    entity_type: str
    error: str


class SweepReport(BaseModel):
    """Outcome of one sweep cycle."""

    delayed_count: int = 0
    reverted_count: int = 0
    failures: List[SweepFailure] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class ReconciliationStore(Protocol):
    """Persistence the sweep needs. Implementations raise on storage failure.

    `load_schedule`/`load_task` lock the entity against other writers until the
    following save or `release`.
    """

    def load_active_schedules(self) -> Iterable[Schedule]: ...

    def load_active_tasks(self) -> Iterable[Task]: ...

    def load_schedule(self, schedule_id: str) -> Optional[Schedule]: ...

    def load_task(self, task_id: str) -> Optional[Task]: ...

    def save_schedule(self, schedule: Schedule) -> None: ...

    def save_task(self, task: Task) -> None: ...

    def release(self) -> None: ...


def reconcile_task(task: Task, now: datetime) -> Tuple[Task, int, int]:
    """Return (task, delayed, reverted); the same object when nothing changes."""
    today0 = start_of_day_utc(now)
    if task.is_terminal:
        return task, 0, 0
    if task.end_date < today0 and task.status != TaskStatus.DELAYED:
        return task.model_copy(update={"status": TaskStatus.DELAYED, "updated_at": as_utc(now)}), 1, 0
    if task.end_date >= today0 and task.status == TaskStatus.DELAYED:
        return task.model_copy(update={"status": TaskStatus.PENDING, "updated_at": as_utc(now)}), 0, 1
    return task, 0, 0


def reconcile_occurrences(
    items: Iterable[OccurrenceStatus],
    now: datetime,
) -> Tuple[List[OccurrenceStatus], int, int]:
    """Age each occurrence against the start of today; returns (items, delayed, reverted)."""
    today0 = start_of_day_utc(now)
    out: List[OccurrenceStatus] = []
    delayed = reverted = 0
    for item in items:
        if item.due_at is not None:
            if item.status == OccurrenceState.PENDING and item.due_at < today0:
                item = item.model_copy(update={"status": OccurrenceState.DELAYED})
                delayed += 1
            elif item.status == OccurrenceState.DELAYED and item.due_at >= today0:
                item = item.model_copy(update={"status": OccurrenceState.PENDING})
                reverted += 1
        out.append(item)
    return out, delayed, reverted


def reconcile_schedule(schedule: Schedule, now: datetime) -> Tuple[Schedule, int, int]:
    """Age a schedule's occurrences and re-derive its status.

    Returns the same object when neither an occurrence nor the aggregate changed.
    """
    items, delayed, reverted = reconcile_occurrences(schedule.occurrences, now)
    status = derive_aggregate_status(items)
    if delayed == 0 and reverted == 0 and status == schedule.status:
        return schedule, 0, 0
    updated = schedule.model_copy(
        update={"occurrences": items, "status": status, "updated_at": as_utc(now)}
    )
    return updated, delayed, reverted


def run_reconciliation_sweep(
    now: datetime,
    store: ReconciliationStore,
    locks: EntityLocks = entity_locks,
) -> SweepReport:
    """Run one sweep cycle over every active schedule and task.

    Raises:
        SweepAbortedError: the active entities could not be loaded at all.
    """
    now = as_utc(now)
    report = SweepReport(started_at=now)

    try:
        schedules = list(store.load_active_schedules())
        tasks = list(store.load_active_tasks())
    except Exception as e:
        logger.error(f"Reconciliation sweep aborted: {type(e).__name__}: {str(e)}")
        raise SweepAbortedError(f"Failed to load entities for reconciliation: {e}") from e

    for schedule in schedules:
        try:
            with locks.hold(schedule_key(schedule.id)):
                # Re-read under the lock so a concurrent explicit update is not overwritten.
                try:
                    current = store.load_schedule(schedule.id)
                    if current is None:
                        continue
                    updated, delayed, reverted = reconcile_schedule(current, now)
                    if updated is not current:
                        store.save_schedule(updated)
                        report.delayed_count += delayed
                        report.reverted_count += reverted
                finally:
                    store.release()
        except Exception as e:
            logger.warning(f"Failed to reconcile schedule {schedule.id}: {type(e).__name__}: {str(e)}")
            report.failures.append(
                SweepFailure(entity_id=schedule.id, entity_type="schedule", error=f"{type(e).__name__}: {e}")
            )

    for task in tasks:
        try:
            with locks.hold(task_key(task.id)):
                try:
                    current = store.load_task(task.id)
                    if current is None:
                        continue
                    updated, delayed, reverted = reconcile_task(current, now)
                    if updated is not current:
                        store.save_task(updated)
                        report.delayed_count += delayed
                        report.reverted_count += reverted
                finally:
                    store.release()
        except Exception as e:
            logger.warning(f"Failed to reconcile task {task.id}: {type(e).__name__}: {str(e)}")
            report.failures.append(
                SweepFailure(entity_id=task.id, entity_type="task", error=f"{type(e).__name__}: {e}")
            )

    report.finished_at = utc_now()
    logger.info(
        f"Reconciliation sweep done: {report.delayed_count} delayed, "
        f"{report.reverted_count} reverted, {len(report.failures)} failures "
        f"({len(schedules)} schedules, {len(tasks)} tasks)"
    )
    return report
