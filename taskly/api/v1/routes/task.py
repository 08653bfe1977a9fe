"""
Task API routes
CRUD, filtering, completion and statistics endpoints for tasks
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from taskly.api.v1.schemas.task import (
    BulkCategoryUpdate,
    TagsUpdate,
    TaskCreate,
    TaskDetailResponse,
    TaskFilter,
    TaskResponse,
    TaskStatistics,
    TaskUpdate,
)
from taskly.core.dependencies import get_task_repository
from taskly.core.exceptions import PersistenceException, ValidationException
from taskly.models.task import TaskPriority
from taskly.repositories.task import TaskRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={
        404: {"description": "Task not found"},
        503: {"description": "Task store unavailable"},
    },
)


def _not_found(task_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Task with ID {task_id} not found",
    )


def _unavailable(e: PersistenceException) -> HTTPException:
    logger.error(f"Task store error: {e.message}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get(
    "",
    response_model=list[TaskResponse],
    summary="List tasks",
    description="Retrieve tasks, newest first, with optional filtering",
    status_code=status.HTTP_200_OK,
)
async def get_tasks(
    completed: Optional[bool] = Query(None, description="Filter by completion status"),
    priority: Optional[TaskPriority] = Query(None, description="Filter by priority"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Substring of title or description"),
    due_from: Optional[datetime] = Query(None, description="Due on or after"),
    due_to: Optional[datetime] = Query(None, description="Due on or before"),
    tag: Optional[str] = Query(None, description="Filter by tag"),
    tasks: TaskRepository = Depends(get_task_repository),
) -> list[TaskResponse]:
    """
    List tasks matching the given filters, newest first.

    Unset query parameters are ignored; set ones are combined with AND.

    Args:
        completed: Only completed (true) or open (false) tasks
        priority: Only tasks with this priority
        category_id: Only tasks in this category
        search: Case-insensitive substring of title or description
        due_from: Inclusive lower bound of the due date
        due_to: Inclusive upper bound of the due date
        tag: Only tasks carrying this tag
        tasks: Task repository

    Returns:
        List of TaskResponse objects

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    task_filter = TaskFilter(
        completed=completed,
        priority=priority,
        category_id=category_id,
        search=search,
        due_from=due_from,
        due_to=due_to,
        tag=tag,
    )
    try:
        return await tasks.get_filtered(task_filter)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/statistics",
    response_model=TaskStatistics,
    summary="Task statistics",
    description="Counts by completion, priority, overdue and due today",
)
async def get_task_statistics(
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskStatistics:
    """
    Aggregate task counts.

    Returns:
        TaskStatistics with completion, priority, overdue and due-today counts

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        return await tasks.get_statistics()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/overdue", response_model=list[TaskResponse], summary="Overdue tasks")
async def get_overdue_tasks(
    tasks: TaskRepository = Depends(get_task_repository),
) -> list[TaskResponse]:
    """
    Open tasks whose due date has passed.
    """
    try:
        return await tasks.get_overdue()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/due-today", response_model=list[TaskResponse], summary="Tasks due today")
async def get_tasks_due_today(
    tasks: TaskRepository = Depends(get_task_repository),
) -> list[TaskResponse]:
    """
    Open tasks due before the end of the current UTC day.
    """
    try:
        return await tasks.get_due_today()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.post(
    "/bulk-category",
    summary="Move tasks to a category",
    description="Set (or clear) the category of several tasks in one transaction",
    status_code=status.HTTP_200_OK,
)
async def bulk_update_category(
    payload: BulkCategoryUpdate,
    tasks: TaskRepository = Depends(get_task_repository),
) -> dict[str, int]:
    """
    Move several tasks to one category, or clear it.

    Unknown task IDs are skipped.

    Args:
        payload: Task IDs and the target category (null clears it)
        tasks: Task repository

    Returns:
        {"updated": <number of tasks changed>}

    Raises:
        HTTPException:
            - 400 if the target category does not exist
            - 503 if the task store is unavailable
    """
    try:
        updated = await tasks.bulk_update_category(payload.task_ids, payload.category_id)
        return {"updated": updated}
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get task by ID",
    status_code=status.HTTP_200_OK,
)
async def get_task(
    task_id: str,
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskResponse:
    """
    Get a task by ID.

    Args:
        task_id: Task ID
        tasks: Task repository

    Returns:
        TaskResponse object

    Raises:
        HTTPException:
            - 404 if the task does not exist
            - 503 if the task store is unavailable
    """
    try:
        task = await tasks.get_by_id(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not task:
        raise _not_found(task_id)
    return task


@router.get(
    "/{task_id}/details",
    response_model=TaskDetailResponse,
    summary="Get task with details",
    description="Task with its subtasks, time sessions, total time and completion percentage",
)
async def get_task_details(
    task_id: str,
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskDetailResponse:
    """
    Get a task with its subtasks and time sessions.

    Returns:
        TaskDetailResponse including total time spent (minutes) and the
        completion percentage

    Raises:
        HTTPException:
            - 404 if the task does not exist
            - 503 if the task store is unavailable
    """
    try:
        detail = await tasks.get_with_details(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not detail:
        raise _not_found(task_id)
    return detail


@router.post(
    "",
    response_model=TaskResponse,
    summary="Create task",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Referenced category does not exist"}},
)
async def create_task(
    task_data: TaskCreate,
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskResponse:
    """
    Create a new task.

    The task starts pending and a create record is queued for sync.

    Args:
        task_data: Task fields; title is required and must not be blank
        tasks: Task repository

    Returns:
        The created TaskResponse

    Raises:
        HTTPException:
            - 400 if the referenced category does not exist
            - 503 if the task store is unavailable
    """
    try:
        return await tasks.create(task_data)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update task",
    description="Update an existing task; only provided fields change",
    responses={400: {"description": "Referenced category does not exist"}},
)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskResponse:
    """
    Partially update a task.

    Only fields present in the body change. Setting completed to true also
    completes every open subtask.

    Args:
        task_id: Task ID
        task_data: Fields to change; null is only accepted for clearable fields
        tasks: Task repository

    Returns:
        The updated TaskResponse

    Raises:
        HTTPException:
            - 400 if the referenced category does not exist or a value is rejected
            - 404 if the task does not exist
            - 503 if the task store is unavailable
    """
    try:
        task = await tasks.update(task_id, task_data)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not task:
        raise _not_found(task_id)
    return task


@router.post(
    "/{task_id}/toggle",
    response_model=TaskResponse,
    summary="Toggle completion",
    description="Flip completion; completing a task also completes its subtasks",
)
async def toggle_task(
    task_id: str,
    completed: Optional[bool] = Query(None, description="Set explicitly instead of flipping"),
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskResponse:
    """
    Flip (or set) the completion of a task.

    Args:
        task_id: Task ID
        completed: Target state; omitted flips the current one
        tasks: Task repository

    Returns:
        The updated TaskResponse

    Raises:
        HTTPException:
            - 404 if the task does not exist
            - 503 if the task store is unavailable
    """
    try:
        task = await tasks.toggle_completion(task_id, completed)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not task:
        raise _not_found(task_id)
    return task


@router.put("/{task_id}/tags", response_model=TaskResponse, summary="Replace task tags")
async def update_task_tags(
    task_id: str,
    payload: TagsUpdate,
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskResponse:
    """
    Replace the tag list of a task.
    """
    try:
        task = await tasks.update_tags(task_id, payload.tags)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not task:
        raise _not_found(task_id)
    return task


@router.delete(
    "/{task_id}",
    summary="Delete task",
    description="Delete a task together with its subtasks and time sessions",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_task(
    task_id: str,
    tasks: TaskRepository = Depends(get_task_repository),
) -> None:
    """
    Delete a task with its subtasks and time sessions.

    Each removed row queues its own delete record.

    Raises:
        HTTPException:
            - 404 if the task does not exist
            - 503 if the task store is unavailable
    """
    try:
        deleted = await tasks.delete(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not deleted:
        raise _not_found(task_id)
    return None  # 204 No Content
