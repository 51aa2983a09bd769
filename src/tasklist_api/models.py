from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from .exceptions import InvalidArgumentError, InvalidOperationError

MAX_NAME_LENGTH = 255


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _validate_name(name: Optional[str]) -> str:
    """
    Return the trimmed name or raise InvalidArgumentError.
    """
    if _is_blank(name):
        raise InvalidArgumentError("Task list name cannot be empty", param_name="name")
    trimmed = name.strip()  # type: ignore[union-attr]
    if len(trimmed) > MAX_NAME_LENGTH:
        raise InvalidArgumentError(
            f"Task list name cannot exceed {MAX_NAME_LENGTH} characters", param_name="name"
        )
    return trimmed


# PUBLIC_INTERFACE
@dataclass
class Timestamps:
    """
    Creation/last-modification pair shared by persisted entities.

    Entities embed a Timestamps value and call `touch()` only from mutators
    that actually changed state.
    """

    created_at: datetime
    updated_at: datetime

    @classmethod
    def now(cls) -> "Timestamps":
        instant = _utcnow()
        return cls(created_at=instant, updated_at=instant)

    def touch(self) -> None:
        """
        Advance updated_at to the current instant. Always moves forward, even
        when the clock has not ticked since the previous value.
        """
        instant = _utcnow()
        if instant <= self.updated_at:
            instant = self.updated_at + timedelta(microseconds=1)
        self.updated_at = instant


# PUBLIC_INTERFACE
class TaskList:
    """
    A named collection owned by one user and shared with a set of connections.

    State changes only through `rename`, `add_connection` and
    `remove_connection`. Invariants:
    - name is trimmed, 1..255 characters
    - owner_id is non-empty and never changes
    - connected_user_ids has no duplicates and never contains owner_id
    - updated_at >= created_at, and updated_at moves only on real changes
    """

    def __init__(self, name: str, owner_id: str) -> None:
        if _is_blank(owner_id):
            raise InvalidArgumentError("Owner ID cannot be empty", param_name="owner_id")
        self._name = _validate_name(name)
        self._owner_id = owner_id
        self._connected_user_ids: List[str] = []
        self._timestamps = Timestamps.now()
        self._id: Optional[str] = None

    @classmethod
    def restore(
        cls,
        id: Optional[str],
        name: str,
        owner_id: str,
        connected_user_ids: Iterable[str],
        created_at: datetime,
        updated_at: datetime,
    ) -> "TaskList":
        """
        Rebuild a persisted task list, re-checking every invariant.

        Duplicate connections collapse to their first occurrence.

        Raises:
            InvalidArgumentError if the stored state violates an invariant.
        """
        task_list = cls(name, owner_id)
        for user_id in connected_user_ids:
            if _is_blank(user_id):
                raise InvalidArgumentError("User ID cannot be empty", param_name="connected_user_ids")
            if user_id == owner_id:
                raise InvalidArgumentError(
                    "Owner cannot be stored as a connection", param_name="connected_user_ids"
                )
            if user_id not in task_list._connected_user_ids:
                task_list._connected_user_ids.append(user_id)
        if updated_at < created_at:
            raise InvalidArgumentError("updated_at cannot precede created_at", param_name="updated_at")
        task_list._timestamps = Timestamps(created_at=created_at, updated_at=updated_at)
        task_list._id = id
        return task_list

    def copy(self) -> "TaskList":
        """Return an independent copy of this task list."""
        return TaskList.restore(
            id=self._id,
            name=self._name,
            owner_id=self._owner_id,
            connected_user_ids=self._connected_user_ids,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def connected_user_ids(self) -> Tuple[str, ...]:
        return tuple(self._connected_user_ids)

    @property
    def created_at(self) -> datetime:
        return self._timestamps.created_at

    @property
    def updated_at(self) -> datetime:
        return self._timestamps.updated_at

    def assign_id(self, task_list_id: str) -> None:
        """
        Set the identifier chosen by the persistence layer. The id is write-once.
        """
        if _is_blank(task_list_id):
            raise InvalidArgumentError("Task list ID cannot be empty", param_name="task_list_id")
        if self._id is not None and self._id != task_list_id:
            raise InvalidOperationError("Task list ID is already assigned")
        self._id = task_list_id

    # PUBLIC_INTERFACE
    def rename(self, new_name: str) -> None:
        """Validate and set a new name. Renaming to the current name is a no-op."""
        name = _validate_name(new_name)
        if name == self._name:
            return
        self._name = name
        self._timestamps.touch()

    # PUBLIC_INTERFACE
    def add_connection(self, user_id: str) -> None:
        """
        Share the list with `user_id`. Adding an existing connection is a no-op.

        Raises:
            InvalidArgumentError if user_id is blank.
            InvalidOperationError if user_id is the owner.
        """
        if _is_blank(user_id):
            raise InvalidArgumentError("User ID cannot be empty", param_name="user_id")
        if user_id == self._owner_id:
            raise InvalidOperationError("Owner cannot be added as a connection")
        if user_id in self._connected_user_ids:
            return
        self._connected_user_ids.append(user_id)
        self._timestamps.touch()

    # PUBLIC_INTERFACE
    def remove_connection(self, user_id: str) -> None:
        """Stop sharing with `user_id`. Removing an absent connection is a no-op."""
        if _is_blank(user_id):
            raise InvalidArgumentError("User ID cannot be empty", param_name="user_id")
        if user_id not in self._connected_user_ids:
            return
        self._connected_user_ids.remove(user_id)
        self._timestamps.touch()

    # PUBLIC_INTERFACE
    def has_access(self, user_id: Optional[str]) -> bool:
        """True for the owner and for connected users."""
        if _is_blank(user_id):
            return False
        return user_id == self._owner_id or user_id in self._connected_user_ids

    # PUBLIC_INTERFACE
    def is_owner(self, user_id: Optional[str]) -> bool:
        return not _is_blank(user_id) and user_id == self._owner_id

    def __repr__(self) -> str:
        return f"TaskList(id={self._id!r}, name={self._name!r}, owner_id={self._owner_id!r})"
