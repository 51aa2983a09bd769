from __future__ import annotations

from typing import Optional


# PUBLIC_INTERFACE
class TaskListError(Exception):
    """
    Base class for all task list errors.

    Each subclass carries a stable `error_code` that the HTTP layer uses in
    error responses.
    """

    error_code: str = "TaskListError"


# PUBLIC_INTERFACE
class InvalidArgumentError(TaskListError, ValueError):
    """Caller supplied structurally invalid input (empty name, blank user id...)."""

    error_code = "InvalidArgument"

    def __init__(self, message: str, param_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.param_name = param_name


# PUBLIC_INTERFACE
class InvalidOperationError(TaskListError):
    """A valid request that violates a domain rule."""

    error_code = "InvalidOperation"


# PUBLIC_INTERFACE
class TaskListNotFoundError(TaskListError):
    """The referenced task list does not exist."""

    error_code = "NotFound"

    def __init__(self, task_list_id: str) -> None:
        super().__init__(f"Task list with ID '{task_list_id}' was not found.")
        self.task_list_id = task_list_id


# PUBLIC_INTERFACE
class ForbiddenError(TaskListError):
    """The acting user lacks the access or ownership required for an operation."""

    error_code = "Forbidden"

    def __init__(self, user_id: Optional[str], operation: str) -> None:
        super().__init__(f"User '{user_id}' is not authorized to perform '{operation}' operation.")
        self.user_id = user_id
        self.operation = operation


# PUBLIC_INTERFACE
class PersistenceError(TaskListError):
    """Storage backend failed to read or write a task list."""

    error_code = "PersistenceError"
