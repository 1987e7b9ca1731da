"""Schedule (CRM "timeline") data model for duewise."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from duewise.models.frequency import FrequencyDefinition, NoFrequency
from duewise.models.occurrence import OccurrenceState, OccurrenceStatus
from duewise.recurrence.calendar_utils import as_utc


class Schedule(BaseModel):
    """A frequency definition, its validity range and the status of every occurrence.

    `status` is derived from `occurrences` and must not be set independently;
    build and mutate schedules through `duewise.engine.schedules`.
    """

    id: str = Field(..., description="Unique schedule identifier (UUID v4)")
    title: str = Field(..., description="Schedule title")
    frequency: FrequencyDefinition = Field(default_factory=NoFrequency)
    start_date: Optional[date] = Field(None, description="First day of the validity range")
    end_date: Optional[date] = Field(None, description="Last day of the validity range (inclusive)")
    occurrences: List[OccurrenceStatus] = Field(default_factory=list)
    status: OccurrenceState = Field(OccurrenceState.PENDING, description="Aggregate status")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None

    def occurrence(self, period: str) -> Optional[OccurrenceStatus]:
        for item in self.occurrences:
            if item.period == period:
                return item
        return None
