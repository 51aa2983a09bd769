from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import MAX_NAME_LENGTH, TaskList


# PUBLIC_INTERFACE
class TaskListRequest(BaseModel):
    """
    Schema for creating or renaming a task list.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Groceries"}})

    name: str = Field(
        ...,
        description="Task list name (1..255 characters after trimming)",
        min_length=1,
        max_length=MAX_NAME_LENGTH,
    )

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> Any:
        """
        Strip surrounding whitespace; length is enforced by the field constraints.
        """
        if isinstance(v, str):
            return v.strip()
        return v


# PUBLIC_INTERFACE
class AddConnectionRequest(BaseModel):
    """
    Schema for sharing a task list with another user.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"user_id": "user-42"}})

    user_id: str = Field(..., description="Identifier of the user to connect", min_length=1)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("user_id cannot be empty")
        return s


# PUBLIC_INTERFACE
class TaskListOut(BaseModel):
    """
    Full representation of a task list.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "6650f0c2a1b2c3d4e5f60718",
                "name": "Groceries",
                "owner_id": "user-1",
                "connected_user_ids": ["user-2", "user-3"],
                "created_at": "2025-01-25T10:15:30.123456Z",
                "updated_at": "2025-01-26T09:00:00.000001Z",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the task list")
    name: str = Field(..., description="Task list name")
    owner_id: str = Field(..., description="User who owns the task list")
    connected_user_ids: List[str] = Field(
        default_factory=list, description="Users the task list is shared with, in the order they were added"
    )
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")

    @classmethod
    def from_entity(cls, task_list: TaskList) -> "TaskListOut":
        return cls(
            id=task_list.id or "",
            name=task_list.name,
            owner_id=task_list.owner_id,
            connected_user_ids=list(task_list.connected_user_ids),
            created_at=task_list.created_at,
            updated_at=task_list.updated_at,
        )


# PUBLIC_INTERFACE
class TaskListSummaryOut(BaseModel):
    """
    Compact representation of a task list used in paginated listings.
    """

    id: str = Field(..., description="Unique identifier of the task list")
    name: str = Field(..., description="Task list name")
    owner_id: str = Field(..., description="User who owns the task list")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")

    @classmethod
    def from_entity(cls, task_list: TaskList) -> "TaskListSummaryOut":
        return cls(
            id=task_list.id or "",
            name=task_list.name,
            owner_id=task_list.owner_id,
            created_at=task_list.created_at,
        )


# PUBLIC_INTERFACE
class PaginatedTaskListsOut(BaseModel):
    """
    Envelope for paginated task list responses.
    """

    items: List[TaskListSummaryOut] = Field(..., description="Task lists on the current page")
    total_count: int = Field(..., description="Total number of task lists accessible to the user")
    page: int = Field(..., description="Page number applied to the query (1-indexed)")
    page_size: int = Field(..., description="Page size applied to the query")
    total_pages: int = Field(..., description="Total number of pages")
    has_next_page: bool = Field(..., description="Whether a later page exists")
    has_previous_page: bool = Field(..., description="Whether an earlier page exists")


class ErrorOut(BaseModel):
    """
    Error body returned for domain and validation failures.
    """

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable message")
    detail: Optional[List[Any]] = Field(default=None, description="Validation error details, if any")
