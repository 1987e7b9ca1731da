"""Repository for Schedule database operations."""

import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from duewise.database.database import supports_row_locks
from duewise.database.models import ScheduleDB
from duewise.models.schedule import Schedule
from duewise.recurrence.calendar_utils import utc_now

logger = logging.getLogger(__name__)


class ScheduleRepository:
    """Repository for Schedule database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _active(self, schedule_id: str):
        return self.db.query(ScheduleDB).filter(
            ScheduleDB.id == schedule_id,
            ScheduleDB.deleted_at.is_(None),
        )

    def create(self, schedule: Schedule) -> Schedule:
        """Create a new schedule."""
        try:
            row = ScheduleDB.from_pydantic(schedule)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created schedule {schedule.id}: {schedule.title[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create schedule {schedule.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, schedule_id: str) -> Optional[Schedule]:
        """Get an active schedule by ID."""
        row = self._active(schedule_id).first()
        return row.to_pydantic() if row else None

    def get_for_update(self, schedule_id: str) -> Optional[Schedule]:
        """Get an active schedule, locking its row until the next commit/rollback."""
        query = self._active(schedule_id)
        if supports_row_locks(self.db):
            query = query.with_for_update()
        row = query.first()
        return row.to_pydantic() if row else None

    def list_active(self) -> List[Schedule]:
        """All non-deleted schedules, newest first."""
        rows = (
            self.db.query(ScheduleDB)
            .filter(ScheduleDB.deleted_at.is_(None))
            .order_by(desc(ScheduleDB.created_at))
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def update(self, schedule: Schedule) -> Schedule:
        """Persist a schedule's frequency, range, occurrences and status."""
        row = self._active(schedule.id).first()
        if not row:
            raise ValueError(f"Schedule {schedule.id} not found")
        row.apply(schedule)
        try:
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Updated schedule {schedule.id}: status={row.status}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update schedule {schedule.id}: {type(e).__name__}: {str(e)}")
            raise

    def soft_delete(self, schedule_id: str) -> bool:
        """Soft-delete a schedule; deleted schedules are skipped by the sweep."""
        row = self._active(schedule_id).first()
        if not row:
            return False
        try:
            row.deleted_at = utc_now()
            self.db.commit()
            logger.debug(f"Soft-deleted schedule {schedule_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to soft-delete schedule {schedule_id}: {type(e).__name__}: {str(e)}")
            raise
