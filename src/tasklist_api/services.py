from __future__ import annotations

from typing import List, Optional

import structlog

from .exceptions import ForbiddenError, InvalidArgumentError, TaskListNotFoundError
from .models import TaskList
from .repositories import Repository
from .schemas import AddConnectionRequest, TaskListOut, TaskListRequest, TaskListSummaryOut
from .utils import PaginatedResult

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _require_user_id(user_id: Optional[str]) -> None:
    if user_id is None or not user_id.strip():
        raise InvalidArgumentError("UserId cannot be empty", param_name="user_id")


# PUBLIC_INTERFACE
class TaskListService:
    """
    Application service for task lists.

    Every operation loads the task list through the repository, checks that it
    exists, then checks that the acting user may perform the operation, and only
    then mutates and persists. Nothing is written when a check fails.

    - Access tier (owner or connection): read, rename, manage connections
    - Ownership tier (owner only): delete
    """

    def __init__(self, repository: Repository) -> None:
        if repository is None:
            raise InvalidArgumentError("repository is required", param_name="repository")
        self._repository = repository

    # PUBLIC_INTERFACE
    async def create(self, request: TaskListRequest, user_id: str) -> TaskListOut:
        """Create a task list owned by `user_id`."""
        _require_user_id(user_id)

        task_list = TaskList(request.name, user_id)
        created = await self._repository.create(task_list)

        logger.info("task_list.created", task_list_id=created.id, owner_id=user_id)
        return TaskListOut.from_entity(created)

    # PUBLIC_INTERFACE
    async def get_by_id(self, task_list_id: str, user_id: str) -> TaskListOut:
        task_list = await self._get_with_access_check(task_list_id, user_id)
        return TaskListOut.from_entity(task_list)

    # PUBLIC_INTERFACE
    async def update(self, task_list_id: str, request: TaskListRequest, user_id: str) -> TaskListOut:
        """Rename a task list the user has access to."""
        task_list = await self._get_with_access_check(task_list_id, user_id)

        task_list.rename(request.name)
        updated = await self._repository.replace(task_list)

        logger.info("task_list.renamed", task_list_id=task_list_id, user_id=user_id)
        return TaskListOut.from_entity(updated)

    # PUBLIC_INTERFACE
    async def delete(self, task_list_id: str, user_id: str) -> bool:
        """
        Delete a task list. Only the owner may delete.

        Returns:
            True if the repository removed a record.
        """
        await self._get_with_owner_check(task_list_id, user_id)
        deleted = await self._repository.delete(task_list_id)

        logger.info("task_list.deleted", task_list_id=task_list_id, user_id=user_id, deleted=deleted)
        return deleted

    # PUBLIC_INTERFACE
    async def list_page(
        self, user_id: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
    ) -> PaginatedResult[TaskListSummaryOut]:
        """
        Return one page of task lists owned by or shared with `user_id`,
        newest first.

        Out-of-range paging input is normalized silently:
        page < 1 becomes 1; page_size outside 1..100 becomes 10.
        """
        _require_user_id(user_id)

        if page < 1:
            page = 1
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            page_size = DEFAULT_PAGE_SIZE

        task_lists = await self._repository.list_by_user_access(user_id, page, page_size)
        total_count = await self._repository.count_by_user_access(user_id)

        return PaginatedResult(
            items=[TaskListSummaryOut.from_entity(t) for t in task_lists],
            total_count=total_count,
            page=page,
            page_size=page_size,
        )

    # PUBLIC_INTERFACE
    async def add_connection(self, task_list_id: str, request: AddConnectionRequest, user_id: str) -> None:
        """Share a task list with `request.user_id`."""
        task_list = await self._get_with_access_check(task_list_id, user_id)

        task_list.add_connection(request.user_id)
        await self._repository.replace(task_list)

        logger.info(
            "task_list.connection_added",
            task_list_id=task_list_id,
            user_id=user_id,
            connection_user_id=request.user_id,
        )

    # PUBLIC_INTERFACE
    async def list_connections(self, task_list_id: str, user_id: str) -> List[str]:
        task_list = await self._get_with_access_check(task_list_id, user_id)
        return list(task_list.connected_user_ids)

    # PUBLIC_INTERFACE
    async def remove_connection(self, task_list_id: str, connection_user_id: str, user_id: str) -> None:
        """Stop sharing a task list with `connection_user_id`."""
        task_list = await self._get_with_access_check(task_list_id, user_id)

        task_list.remove_connection(connection_user_id)
        await self._repository.replace(task_list)

        logger.info(
            "task_list.connection_removed",
            task_list_id=task_list_id,
            user_id=user_id,
            connection_user_id=connection_user_id,
        )

    async def _load(self, task_list_id: str) -> TaskList:
        task_list = await self._repository.get(task_list_id)
        if task_list is None:
            raise TaskListNotFoundError(task_list_id)
        return task_list

    async def _get_with_access_check(self, task_list_id: str, user_id: str) -> TaskList:
        task_list = await self._load(task_list_id)
        if not task_list.has_access(user_id):
            raise ForbiddenError(user_id, "access task list")
        return task_list

    async def _get_with_owner_check(self, task_list_id: str, user_id: str) -> TaskList:
        task_list = await self._load(task_list_id)
        if not task_list.is_owner(user_id):
            raise ForbiddenError(user_id, "delete task list")
        return task_list
