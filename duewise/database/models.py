"""SQLAlchemy database models for duewise."""

import uuid
from datetime import datetime
from typing import Type, TypeVar, Union

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, String

from duewise.database.database import Base
from duewise.models.occurrence import OccurrenceState, OccurrenceStatus
from duewise.models.task import TaskStatus
from duewise.recurrence.calendar_utils import utc_now

T = TypeVar("T")


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, "value"):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def _occurrences_to_json(items) -> list:
    return [item.model_dump(mode="json") for item in items]


def _occurrences_from_json(rows) -> list:
    return [OccurrenceStatus.model_validate(row) for row in (rows or [])]


class ScheduleDB(Base):
    """Database model for Schedule (the CRM timeline)."""

    __tablename__ = "schedules"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String, nullable=False)

    # Frequency definition (tagged union, stored as its JSON dump)
    frequency = Column(JSON, nullable=False, default=lambda: {"type": "none"})

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Per-occurrence statuses (JSON array of OccurrenceStatus dumps)
    occurrences = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default=OccurrenceState.PENDING.value, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from duewise.models.frequency import parse_frequency
        from duewise.models.schedule import Schedule

        return Schedule(
            id=self.id,
            title=self.title,
            frequency=parse_frequency(self.frequency or {"type": "none"}),
            start_date=self.start_date,
            end_date=self.end_date,
            occurrences=_occurrences_from_json(self.occurrences),
            status=value_to_enum(self.status, OccurrenceState, OccurrenceState.PENDING),
            created_at=self.created_at,
            updated_at=self.updated_at,
            deleted_at=self.deleted_at,
        )

    @classmethod
    def from_pydantic(cls, schedule):
        """Create database model from Pydantic model."""
        from duewise.models.frequency import dump_frequency

        return cls(
            id=schedule.id,
            title=schedule.title,
            frequency=dump_frequency(schedule.frequency),
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            occurrences=_occurrences_to_json(schedule.occurrences),
            status=enum_to_value(schedule.status),
            created_at=schedule.created_at,
            updated_at=schedule.updated_at,
            deleted_at=schedule.deleted_at,
        )

    def apply(self, schedule) -> None:
        """Copy mutable fields from a Pydantic schedule onto this row."""
        from duewise.models.frequency import dump_frequency

        self.title = schedule.title
        self.frequency = dump_frequency(schedule.frequency)
        self.start_date = schedule.start_date
        self.end_date = schedule.end_date
        # Assign a new list so the JSON column is flagged as modified.
        self.occurrences = _occurrences_to_json(schedule.occurrences)
        self.status = enum_to_value(schedule.status)
        self.updated_at = schedule.updated_at


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owning schedule (optional)
    schedule_id = Column(String, ForeignKey("schedules.id", ondelete="SET NULL"), nullable=True, index=True)

    # Basic fields
    title = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value, index=True)

    # Task window
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from duewise.models.task import Task

        return Task(
            id=self.id,
            title=self.title,
            notes=self.notes,
            schedule_id=self.schedule_id,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.PENDING),
            start_date=self.start_date,
            end_date=self.end_date,
            completed_at=self.completed_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
            deleted_at=self.deleted_at,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            title=task.title,
            notes=task.notes,
            schedule_id=task.schedule_id,
            status=enum_to_value(task.status),
            start_date=task.start_date,
            end_date=task.end_date,
            completed_at=task.completed_at,
            created_at=task.created_at,
            updated_at=task.updated_at,
            deleted_at=task.deleted_at,
        )

    def apply(self, task) -> None:
        """Copy mutable fields from a Pydantic task onto this row."""
        self.title = task.title
        self.notes = task.notes
        self.schedule_id = task.schedule_id
        self.status = enum_to_value(task.status)
        self.start_date = task.start_date
        self.end_date = task.end_date
        self.completed_at = task.completed_at
        self.updated_at = task.updated_at
