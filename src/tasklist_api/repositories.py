from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from functools import lru_cache
from threading import RLock
from typing import Dict, List, Optional

from .exceptions import PersistenceError
from .models import TaskList
from .settings import get_settings


def new_task_list_id() -> str:
    """Return a fresh 24-hex-character identifier."""
    return secrets.token_hex(12)


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract persistence port for task list storage backends."""

    @abstractmethod
    async def get(self, task_list_id: str) -> Optional[TaskList]:
        """Return a TaskList by id, or None if not found."""

    @abstractmethod
    async def list_by_user_access(self, user_id: str, page: int, page_size: int) -> List[TaskList]:
        """
        Return one page of task lists owned by or shared with `user_id`.
        - Sorted by created_at, newest first
        - `page` is 1-indexed
        """

    @abstractmethod
    async def count_by_user_access(self, user_id: str) -> int:
        """Return the number of task lists owned by or shared with `user_id`."""

    @abstractmethod
    async def create(self, task_list: TaskList) -> TaskList:
        """Store a new TaskList, assigning an id if it has none, and return it."""

    @abstractmethod
    async def replace(self, task_list: TaskList) -> TaskList:
        """
        Overwrite the stored TaskList with the same id and return it.
        Raises PersistenceError if no such record exists.
        """

    @abstractmethod
    async def delete(self, task_list_id: str) -> bool:
        """Delete a TaskList by id. Return True if deleted, False if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TaskList] = {}
        # insertion order breaks ties between equal created_at values
        self._sequence: Dict[str, int] = {}
        self._next_sequence = 1

    def _accessible(self, user_id: str) -> List[TaskList]:
        return [t for t in self._items.values() if t.has_access(user_id)]

    async def get(self, task_list_id: str) -> Optional[TaskList]:
        if not task_list_id or not task_list_id.strip():
            return None
        with self._lock:
            item = self._items.get(task_list_id)
            return None if item is None else item.copy()

    async def list_by_user_access(self, user_id: str, page: int, page_size: int) -> List[TaskList]:
        if not user_id or not user_id.strip():
            return []
        with self._lock:
            items_sorted = sorted(
                self._accessible(user_id),
                key=lambda t: (t.created_at, self._sequence[t.id]),  # type: ignore[index]
                reverse=True,
            )
            start = max(page - 1, 0) * max(page_size, 0)
            end = start + max(page_size, 0)
            # Return copies to avoid external mutation
            return [t.copy() for t in items_sorted[start:end]]

    async def count_by_user_access(self, user_id: str) -> int:
        if not user_id or not user_id.strip():
            return 0
        with self._lock:
            return len(self._accessible(user_id))

    async def create(self, task_list: TaskList) -> TaskList:
        if task_list.id is None:
            task_list.assign_id(new_task_list_id())
        with self._lock:
            if task_list.id in self._items:
                raise PersistenceError(f"TaskList with id {task_list.id} already exists")
            self._items[task_list.id] = task_list.copy()  # type: ignore[index]
            self._sequence[task_list.id] = self._next_sequence  # type: ignore[index]
            self._next_sequence += 1
        return task_list

    async def replace(self, task_list: TaskList) -> TaskList:
        with self._lock:
            if task_list.id is None or task_list.id not in self._items:
                raise PersistenceError(f"TaskList with id {task_list.id} not found")
            self._items[task_list.id] = task_list.copy()
        return task_list

    async def delete(self, task_list_id: str) -> bool:
        if not task_list_id or not task_list_id.strip():
            return False
        with self._lock:
            self._sequence.pop(task_list_id, None)
            return self._items.pop(task_list_id, None) is not None


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the configured repository based on settings. The instance is
    shared for the lifetime of the process.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
