"""Tests for the background reconciliation job."""

import threading
from datetime import datetime, timezone

import pytest

from duewise.database.repository import TaskRepository
from duewise.engine.locks import EntityLocks
from duewise.jobs.reconciliation_job import (
    DAILY_JOB_ID,
    HOURLY_JOB_ID,
    ReconciliationJob,
    SweepAlreadyRunning,
)
from duewise.models.task import TaskStatus
from duewise.recurrence.errors import SweepAbortedError


class _SessionFactory:
    """Hands out the test session and records close() calls."""

    def __init__(self, session):
        self.session = session
        self.closed = 0

    def __call__(self):
        factory = self

        class _Proxy:
            def __getattr__(self, name):
                return getattr(factory.session, name)

            def close(self):
                factory.closed += 1

        return _Proxy()


class _BrokenSession:
    def query(self, *args, **kwargs):
        raise ConnectionError("database unavailable")

    def close(self):
        pass


@pytest.fixture
def job(db_session):
    job = ReconciliationJob(session_factory=_SessionFactory(db_session), locks=EntityLocks(), hour_utc=0, hourly_catchup=True)
    yield job
    job.stop()


NOW = datetime(2024, 1, 11, 8, 0, tzinfo=timezone.utc)


class TestReconciliationJob:
    def test_run_once_sweeps_and_records_report(self, job, task_repository, sample_task):
        task_repository.create(sample_task)

        report = job.run_once(NOW)

        assert report.delayed_count == 1
        assert job.last_report == report
        assert job.last_run_at == NOW
        assert job.last_error is None
        assert job._session_factory.closed == 1
        assert TaskRepository(job._session_factory.session).get(sample_task.id).status == TaskStatus.DELAYED

    def test_run_once_swallows_abort(self):
        job = ReconciliationJob(session_factory=_BrokenSession, locks=EntityLocks())
        assert job.run_once(NOW) is None
        assert "database unavailable" in job.last_error

    def test_trigger_raises_abort(self):
        job = ReconciliationJob(session_factory=_BrokenSession, locks=EntityLocks())
        with pytest.raises(SweepAbortedError):
            job.trigger(NOW)

    def test_trigger_with_explicit_session_does_not_close_it(self, job, db_session):
        job.trigger(NOW, db=db_session)
        assert job._session_factory.closed == 0

    def test_overlapping_runs(self, job):
        job._run_lock.acquire()
        try:
            assert job.is_running is True
            assert job.run_once(NOW) is None
            with pytest.raises(SweepAlreadyRunning):
                job.trigger(NOW)
        finally:
            job._run_lock.release()
        assert job.is_running is False

    def test_start_registers_daily_and_hourly_jobs(self, job):
        job.start()
        try:
            ids = {j.id for j in job._scheduler.get_jobs()}
            assert ids == {DAILY_JOB_ID, HOURLY_JOB_ID}
            status = job.get_status()
            assert status["is_scheduled"] is True
            assert status["next_run_at"] is not None
        finally:
            job.stop()
        assert job.get_status()["is_scheduled"] is False

    def test_start_without_catchup(self, db_session):
        job = ReconciliationJob(session_factory=_SessionFactory(db_session), hourly_catchup=False)
        job.start()
        try:
            assert {j.id for j in job._scheduler.get_jobs()} == {DAILY_JOB_ID}
        finally:
            job.stop()

    def test_start_is_idempotent(self, job):
        job.start()
        scheduler = job._scheduler
        job.start()
        assert job._scheduler is scheduler
