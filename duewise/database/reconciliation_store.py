"""SQLAlchemy-backed persistence for the reconciliation sweep."""

from typing import List, Optional

from sqlalchemy.orm import Session

from duewise.database.repository import TaskRepository
from duewise.database.schedule_repository import ScheduleRepository
from duewise.models.schedule import Schedule
from duewise.models.task import Task


class SqlReconciliationStore:
    """Adapts the schedule and task repositories to the sweep's store protocol.

    Per-entity loads take the row lock (SELECT ... FOR UPDATE) the API writers
    take, so a sweep in another process cannot overwrite a concurrent update.
    """

    def __init__(self, db: Session):
        self.db = db
        self.schedules = ScheduleRepository(db)
        self.tasks = TaskRepository(db)

    def load_active_schedules(self) -> List[Schedule]:
        return self.schedules.list_active()

    def load_active_tasks(self) -> List[Task]:
        return self.tasks.get_all()

    def load_schedule(self, schedule_id: str) -> Optional[Schedule]:
        return self.schedules.get_for_update(schedule_id)

    def load_task(self, task_id: str) -> Optional[Task]:
        return self.tasks.get_for_update(task_id)

    def save_schedule(self, schedule: Schedule) -> None:
        self.schedules.update(schedule)

    def save_task(self, task: Task) -> None:
        self.tasks.update(task)

    def release(self) -> None:
        # Saves commit on their own; this ends the transaction of an unchanged entity.
        self.db.rollback()
