"""Task data model for duewise."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from duewise.recurrence.calendar_utils import as_utc


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


TERMINAL_TASK_STATUSES = (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


class Task(BaseModel):
    """A one-off task with an absolute start/end window.

    Tasks have no per-occurrence breakdown; the reconciliation sweep compares
    `end_date` with the start of today (UTC) to move them between pending and
    delayed.
    """

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    title: str = Field(..., description="Task title")
    notes: Optional[str] = Field(None, description="Task notes or description")
    schedule_id: Optional[str] = Field(None, description="Owning schedule, if the task was raised from one")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Task status")
    start_date: Optional[datetime] = Field(None, description="Start of the task window (UTC)")
    end_date: datetime = Field(..., description="Deadline (UTC); delayed once its calendar day has passed")
    completed_at: Optional[datetime] = Field(None, description="When the task was completed")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    @field_validator("start_date", "end_date", "completed_at", "created_at", "updated_at", "deleted_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TASK_STATUSES
