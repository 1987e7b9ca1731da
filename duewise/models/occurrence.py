"""Occurrence and per-occurrence status models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from duewise.recurrence.calendar_utils import as_utc


class OccurrenceState(str, Enum):
    """Status of one occurrence; also the value set of a schedule's aggregate status."""

    PENDING = "pending"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    DELAYED = "delayed"


class Occurrence(BaseModel):
    """One concrete scheduled instant produced by the generator."""

    period_key: str = Field(..., description="Canonical, frequency-specific period identifier")
    due_at: datetime = Field(..., description="Due instant (UTC)")

    @field_validator("due_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class OccurrenceStatus(BaseModel):
    """Tracked status of one occurrence, keyed by `period` within its schedule."""

    period: str
    status: OccurrenceState = OccurrenceState.PENDING
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    due_at: Optional[datetime] = Field(None, description="Due instant of the occurrence (UTC)")

    @field_validator("completed_at", "due_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None
