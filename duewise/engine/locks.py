"""Per-entity write locks.

Writers to one schedule (or task) take that entity's lock; unrelated entities
never contend. Database writers additionally lock the row (SELECT ... FOR UPDATE)
where the backend supports it.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class EntityLocks:
    """Registry of one lock per entity key (e.g. "schedule:<id>").

    A key's lock lives only while someone holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def _acquire_ref(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
                self._users[key] = 0
            self._users[key] += 1
            return lock

    def _release_ref(self, key: str) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._acquire_ref(key)
        try:
            with lock:
                yield
        finally:
            self._release_ref(key)

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._locks)


def schedule_key(schedule_id: str) -> str:
    return f"schedule:{schedule_id}"


def task_key(task_id: str) -> str:
    return f"task:{task_id}"


# Process-wide registry shared by the API and the background sweep.
entity_locks = EntityLocks()
