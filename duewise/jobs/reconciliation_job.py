"""Background reconciliation job.

Runs the reconciliation sweep daily (at SWEEP_HOUR_UTC) plus an optional hourly
catch-up so a missed midnight run is made good within the hour. Overlapping
runs are skipped; a manual trigger while a run is in progress is refused.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from duewise import config
from duewise.database.database import SessionLocal
from duewise.database.reconciliation_store import SqlReconciliationStore
from duewise.engine.locks import EntityLocks, entity_locks
from duewise.engine.sweeper import SweepReport, run_reconciliation_sweep
from duewise.recurrence.calendar_utils import as_utc, utc_now
from duewise.recurrence.errors import SweepAbortedError

logger = logging.getLogger(__name__)

DAILY_JOB_ID = "reconciliation-daily"
HOURLY_JOB_ID = "reconciliation-hourly"


class SweepAlreadyRunning(RuntimeError):
    """A manual trigger arrived while a sweep was in progress."""


class ReconciliationJob:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        locks: EntityLocks = entity_locks,
        hour_utc: Optional[int] = None,
        hourly_catchup: Optional[bool] = None,
    ):
        self._session_factory = session_factory
        self._locks = locks
        self.hour_utc = config.SWEEP_HOUR_UTC if hour_utc is None else hour_utc
        self.hourly_catchup = config.SWEEP_HOURLY_CATCHUP if hourly_catchup is None else hourly_catchup
        self._scheduler: Optional[BackgroundScheduler] = None
        self._run_lock = threading.Lock()
        self.last_run_at: Optional[datetime] = None
        self.last_report: Optional[SweepReport] = None
        self.last_error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def is_scheduled(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.is_scheduled:
            return
        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            self.run_once,
            CronTrigger(hour=self.hour_utc, minute=0, timezone="UTC"),
            id=DAILY_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        if self.hourly_catchup:
            scheduler.add_job(
                self.run_once,
                IntervalTrigger(hours=1, timezone="UTC"),
                id=HOURLY_JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            f"Reconciliation job started: daily at {self.hour_utc:02d}:00 UTC"
            + (", hourly catch-up" if self.hourly_catchup else "")
        )

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Reconciliation job stopped")

    def _execute(self, now: datetime, db: Optional[Session]) -> SweepReport:
        session = db if db is not None else self._session_factory()
        try:
            report = run_reconciliation_sweep(now, SqlReconciliationStore(session), self._locks)
        except SweepAbortedError as e:
            self.last_run_at = now
            self.last_error = str(e)
            raise
        finally:
            if db is None:
                session.close()
        self.last_run_at = now
        self.last_report = report
        self.last_error = None
        return report

    def run_once(self, now: Optional[datetime] = None) -> Optional[SweepReport]:
        """Scheduled entry point: never raises, skips when a run is in progress."""
        if not self._run_lock.acquire(blocking=False):
            logger.info("Reconciliation sweep already running; skipping this cycle")
            return None
        try:
            return self._execute(as_utc(now or utc_now()), None)
        except SweepAbortedError as e:
            logger.error(f"Scheduled reconciliation sweep aborted: {str(e)}")
            return None
        finally:
            self._run_lock.release()

    def trigger(self, now: Optional[datetime] = None, db: Optional[Session] = None) -> SweepReport:
        """Manual entry point.

        Raises:
            SweepAlreadyRunning: another sweep is in progress.
            SweepAbortedError: entities could not be loaded.
        """
        if not self._run_lock.acquire(blocking=False):
            raise SweepAlreadyRunning("A reconciliation sweep is already running")
        try:
            return self._execute(as_utc(now or utc_now()), db)
        finally:
            self._run_lock.release()

    def get_status(self) -> Dict[str, Any]:
        next_run_at = None
        if self.is_scheduled:
            runs = [job.next_run_time for job in self._scheduler.get_jobs() if job.next_run_time]
            next_run_at = min(runs) if runs else None
        return {
            "is_running": self.is_running,
            "is_scheduled": self.is_scheduled,
            "next_run_at": next_run_at,
            "last_run_at": self.last_run_at,
            "last_error": self.last_error,
            "last_report": self.last_report,
        }


# Process-wide job started by the API lifespan.
reconciliation_job = ReconciliationJob()
