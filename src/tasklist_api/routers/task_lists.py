from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth import get_current_user_id
from ..exceptions import TaskListNotFoundError
from ..repositories import Repository, get_repository
from ..schemas import (
    AddConnectionRequest,
    ErrorOut,
    PaginatedTaskListsOut,
    TaskListOut,
    TaskListRequest,
)
from ..services import DEFAULT_PAGE_SIZE, TaskListService

router = APIRouter(
    prefix="/api/v1/task-lists",
    tags=["task-lists"],
)

_COMMON_ERRORS = {
    401: {"description": "Missing X-User-Id header"},
    403: {"model": ErrorOut, "description": "User may not perform this operation"},
    404: {"model": ErrorOut, "description": "Task list not found"},
}


def get_task_list_service(repo: Repository = Depends(get_repository)) -> TaskListService:
    """
    Dependency building the service around the configured repository.
    """
    return TaskListService(repo)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskListOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task List",
    description="Create a new task list owned by the calling user.",
    responses={
        201: {"description": "Task list created successfully"},
        400: {"model": ErrorOut, "description": "Invalid input"},
        401: _COMMON_ERRORS[401],
    },
)
async def create_task_list(
    payload: TaskListRequest,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> TaskListOut:
    return await service.create(payload, user_id)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginatedTaskListsOut,
    summary="List Task Lists",
    description=(
        "List task lists owned by or shared with the calling user, newest first.\n\n"
        "Query parameters:\n"
        "- page: 1-indexed page number; values below 1 are treated as 1\n"
        "- page_size: items per page (1..100); other values are treated as 10"
    ),
    responses={
        200: {"description": "Page retrieved successfully"},
        401: _COMMON_ERRORS[401],
    },
)
async def list_task_lists(
    page: int = Query(1, description="Page number (default: 1)"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Page size (default: 10, max: 100)"),
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> PaginatedTaskListsOut:
    result = await service.list_page(user_id, page, page_size)
    return PaginatedTaskListsOut(**result.to_envelope())


# PUBLIC_INTERFACE
@router.get(
    "/{task_list_id}",
    response_model=TaskListOut,
    summary="Get Task List",
    description="Get a single task list by ID. Requires owner or connection access.",
    responses={200: {"description": "Task list found"}, **_COMMON_ERRORS},
)
async def get_task_list(
    task_list_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> TaskListOut:
    return await service.get_by_id(task_list_id, user_id)


# PUBLIC_INTERFACE
@router.put(
    "/{task_list_id}",
    response_model=TaskListOut,
    summary="Rename Task List",
    description="Rename a task list. Requires owner or connection access.",
    responses={
        200: {"description": "Task list updated"},
        400: {"model": ErrorOut, "description": "Invalid input"},
        **_COMMON_ERRORS,
    },
)
async def update_task_list(
    task_list_id: str,
    payload: TaskListRequest,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> TaskListOut:
    return await service.update(task_list_id, payload, user_id)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_list_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task List",
    description="Delete a task list. Only the owner may delete.",
    responses={204: {"description": "Task list deleted"}, **_COMMON_ERRORS},
)
async def delete_task_list(
    task_list_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> Response:
    deleted = await service.delete(task_list_id, user_id)
    if not deleted:
        raise TaskListNotFoundError(task_list_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.post(
    "/{task_list_id}/connections",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Add Connection",
    description="Share a task list with another user. Requires owner or connection access.",
    responses={
        204: {"description": "Connection added"},
        400: {"model": ErrorOut, "description": "Invalid user id, or the owner was given"},
        **_COMMON_ERRORS,
    },
)
async def add_connection(
    task_list_id: str,
    payload: AddConnectionRequest,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> Response:
    await service.add_connection(task_list_id, payload, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.get(
    "/{task_list_id}/connections",
    response_model=List[str],
    summary="List Connections",
    description="Return the users a task list is shared with.",
    responses={200: {"description": "Connections retrieved"}, **_COMMON_ERRORS},
)
async def list_connections(
    task_list_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> List[str]:
    return await service.list_connections(task_list_id, user_id)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_list_id}/connections/{connection_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Connection",
    description="Stop sharing a task list with a user. Requires owner or connection access.",
    responses={204: {"description": "Connection removed"}, **_COMMON_ERRORS},
)
async def remove_connection(
    task_list_id: str,
    connection_user_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TaskListService = Depends(get_task_list_service),
) -> Response:
    await service.remove_connection(task_list_id, connection_user_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
