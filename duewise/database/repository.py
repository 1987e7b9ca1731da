"""Repository layer for task database operations."""

import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from duewise.database.database import supports_row_locks
from duewise.database.models import TaskDB
from duewise.models.task import Task
from duewise.recurrence.calendar_utils import utc_now

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _active(self, task_id: str):
        return self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.deleted_at.is_(None),
        )

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, task_id: str) -> Optional[Task]:
        """Get an active task by ID."""
        task_db = self._active(task_id).first()
        return task_db.to_pydantic() if task_db else None

    def get_for_update(self, task_id: str) -> Optional[Task]:
        """Get an active task, locking its row until the next commit/rollback."""
        query = self._active(task_id)
        if supports_row_locks(self.db):
            query = query.with_for_update()
        task_db = query.first()
        return task_db.to_pydantic() if task_db else None

    def get_all(self) -> List[Task]:
        """Get all active tasks sorted by creation date (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.deleted_at.is_(None),
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_for_schedule(self, schedule_id: str) -> List[Task]:
        """Active tasks raised from a schedule."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.schedule_id == schedule_id,
            TaskDB.deleted_at.is_(None),
        ).order_by(TaskDB.end_date).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def update(self, task: Task) -> Task:
        """Update an existing task."""
        task_db = self._active(task.id).first()
        if not task_db:
            raise ValueError(f"Task {task.id} not found")

        task_db.apply(task)

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, task_id: str) -> bool:
        """Soft-delete a task by ID."""
        task_db = self._active(task_id).first()
        if not task_db:
            return False

        try:
            task_db.deleted_at = utc_now()
            self.db.commit()
            logger.debug(f"Soft-deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to soft-delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise
