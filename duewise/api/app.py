"""FastAPI web application for duewise."""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from duewise import __version__, config
from duewise.database.database import get_db, init_db
from duewise.database.repository import TaskRepository
from duewise.database.schedule_repository import ScheduleRepository
from duewise.engine.locks import entity_locks, task_key
from duewise.engine.sweeper import SweepReport
from duewise.jobs.reconciliation_job import SweepAlreadyRunning, reconciliation_job
from duewise.models.occurrence import OccurrenceState
from duewise.models.schedule import Schedule
from duewise.models.task import Task, TaskStatus
from duewise.models.task_factory import create_task_base
from duewise.recurrence.calendar_utils import as_utc, utc_now
from duewise.recurrence.errors import (
    InvalidFrequencyConfig,
    PeriodNotFound,
    ScheduleEngineError,
    SweepAbortedError,
)
from duewise.recurrence.financial_year import FinancialYear, resolve_financial_year
from duewise.recurrence.legacy_config import parse_legacy_frequency_config
from duewise.recurrence.materialize import (
    materialize_schedule,
    record_occurrence_status,
    rematerialize_schedule,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if config.SWEEP_ENABLED:
        reconciliation_job.start()
    try:
        yield
    finally:
        reconciliation_job.stop()


# Initialize FastAPI app
app = FastAPI(
    title="duewise API",
    description="Recurring schedules, per-occurrence status tracking and daily reconciliation",
    version=__version__,
    lifespan=lifespan,
)


# Request models
class ScheduleCreateRequest(BaseModel):
    """Create a schedule from a typed frequency or a legacy (frequency, frequencyConfig) pair."""
    title: str = Field(..., min_length=1)
    frequency: Optional[Dict[str, Any]] = Field(None, description="Typed frequency definition")
    legacy_frequency: Optional[str] = Field(None, description="Legacy frequency name, e.g. 'Monthly'")
    frequency_config: Optional[Dict[str, Any]] = Field(None, description="Legacy camelCase config record")
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ScheduleUpdateRequest(BaseModel):
    title: Optional[str] = None
    frequency: Optional[Dict[str, Any]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class OccurrenceUpdateRequest(BaseModel):
    status: OccurrenceState
    notes: Optional[str] = None


class TaskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    notes: Optional[str] = None
    schedule_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: datetime


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[TaskStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# Response models
class ScheduleResponse(BaseModel):
    schedule: Schedule


class ScheduleListResponse(BaseModel):
    schedules: List[Schedule]


class TaskResponse(BaseModel):
    task: Task


class TaskListResponse(BaseModel):
    tasks: List[Task]


class SweepStatusResponse(BaseModel):
    is_running: bool
    is_scheduled: bool
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_report: Optional[SweepReport] = None


# Error mapping
@app.exception_handler(InvalidFrequencyConfig)
async def invalid_frequency_handler(request: Request, exc: InvalidFrequencyConfig):
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(PeriodNotFound)
async def period_not_found_handler(request: Request, exc: PeriodNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ScheduleEngineError)
async def engine_error_handler(request: Request, exc: ScheduleEngineError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": None})


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/financial-year", response_model=FinancialYear)
async def get_financial_year(on: Optional[date] = None):
    """Financial year containing `on` (defaults to today, UTC)."""
    return resolve_financial_year(on or utc_now())


# Schedules
@app.post("/schedules", response_model=ScheduleResponse, status_code=201)
def create_schedule(request: ScheduleCreateRequest, db: Session = Depends(get_db)):
    """Create a schedule and seed every occurrence in its range as pending."""
    if request.frequency is not None:
        frequency = request.frequency
    elif request.legacy_frequency is not None:
        frequency = parse_legacy_frequency_config(request.legacy_frequency, request.frequency_config)
    else:
        frequency = {"type": "none"}
    schedule = materialize_schedule(
        db,
        title=request.title,
        frequency=frequency,
        start_date=request.start_date,
        end_date=request.end_date,
    )
    return ScheduleResponse(schedule=schedule)


@app.get("/schedules", response_model=ScheduleListResponse)
def list_schedules(db: Session = Depends(get_db)):
    return ScheduleListResponse(schedules=ScheduleRepository(db).list_active())


@app.get("/schedules/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(schedule_id: str, db: Session = Depends(get_db)):
    schedule = ScheduleRepository(db).get(schedule_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return ScheduleResponse(schedule=schedule)


@app.get("/schedules/{schedule_id}/tasks", response_model=TaskListResponse)
def list_schedule_tasks(schedule_id: str, db: Session = Depends(get_db)):
    """Active tasks raised from a schedule, earliest end date first."""
    if ScheduleRepository(db).get(schedule_id) is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return TaskListResponse(tasks=TaskRepository(db).get_for_schedule(schedule_id))


@app.put("/schedules/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(schedule_id: str, request: ScheduleUpdateRequest, db: Session = Depends(get_db)):
    """Edit a schedule's configuration or range and regenerate its occurrences.

    Statuses of periods present before and after the edit are kept.
    """
    schedule = rematerialize_schedule(
        db,
        schedule_id,
        frequency=request.frequency,
        start_date=request.start_date,
        end_date=request.end_date,
        title=request.title,
    )
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return ScheduleResponse(schedule=schedule)


@app.patch("/schedules/{schedule_id}/occurrences/{period}", response_model=ScheduleResponse)
def update_occurrence(
    schedule_id: str,
    period: str,
    request: OccurrenceUpdateRequest,
    db: Session = Depends(get_db),
):
    """Set the status of one occurrence; the schedule status is re-derived."""
    schedule = record_occurrence_status(db, schedule_id, period, request.status, notes=request.notes)
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return ScheduleResponse(schedule=schedule)


@app.delete("/schedules/{schedule_id}", status_code=204)
def delete_schedule(schedule_id: str, db: Session = Depends(get_db)):
    if not ScheduleRepository(db).soft_delete(schedule_id):
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")


# Tasks
@app.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(request: TaskCreateRequest, db: Session = Depends(get_db)):
    if request.schedule_id is not None and ScheduleRepository(db).get(request.schedule_id) is None:
        raise HTTPException(status_code=404, detail=f"Schedule {request.schedule_id} not found")
    task = create_task_base(
        title=request.title,
        end_date=request.end_date,
        start_date=request.start_date,
        notes=request.notes,
        schedule_id=request.schedule_id,
    )
    return TaskResponse(task=TaskRepository(db).create(task))


@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(db: Session = Depends(get_db)):
    return TaskListResponse(tasks=TaskRepository(db).get_all())


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, db: Session = Depends(get_db)):
    task = TaskRepository(db).get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return TaskResponse(task=task)


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(task_id: str, request: TaskUpdateRequest, db: Session = Depends(get_db)):
    repo = TaskRepository(db)
    with entity_locks.hold(task_key(task_id)):
        task = repo.get_for_update(task_id)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")

        now = utc_now()
        update: Dict[str, Any] = {"updated_at": now}
        for field in ("title", "notes", "start_date", "end_date"):
            value = getattr(request, field)
            if value is not None:
                update[field] = as_utc(value) if isinstance(value, datetime) else value
        if request.status is not None:
            update["status"] = request.status
            if request.status == TaskStatus.COMPLETED:
                update["completed_at"] = task.completed_at or now
            else:
                update["completed_at"] = None
        return TaskResponse(task=repo.update(task.model_copy(update=update)))


@app.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: str, db: Session = Depends(get_db)):
    if not TaskRepository(db).delete(task_id):
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")


# Reconciliation
@app.post("/sweep", response_model=SweepReport)
def trigger_sweep(now: Optional[datetime] = None, db: Session = Depends(get_db)):
    """Run a reconciliation sweep immediately (optionally as of `now`)."""
    try:
        return reconciliation_job.trigger(now=now, db=db)
    except SweepAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SweepAbortedError as e:
        logger.error(f"Manual reconciliation sweep aborted: {str(e)}")
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/sweep/status", response_model=SweepStatusResponse)
def sweep_status():
    return SweepStatusResponse(**reconciliation_job.get_status())
