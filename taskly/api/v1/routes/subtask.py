"""
Subtask API routes
Checklist items of a task: CRUD, completion and ordering
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from taskly.api.v1.schemas.subtask import (
    CompletionStats,
    SubtaskCreate,
    SubtaskReorder,
    SubtaskResponse,
    SubtaskStatistics,
    SubtaskUpdate,
)
from taskly.core.dependencies import get_subtask_repository
from taskly.core.exceptions import PersistenceException, ValidationException
from taskly.repositories.subtask import SubtaskRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["subtasks"],
    responses={
        404: {"description": "Subtask not found"},
        503: {"description": "Task store unavailable"},
    },
)


def _not_found(subtask_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Subtask with ID {subtask_id} not found",
    )


def _unavailable(e: PersistenceException) -> HTTPException:
    logger.error(f"Subtask store error: {e.message}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get(
    "/tasks/{task_id}/subtasks",
    response_model=list[SubtaskResponse],
    summary="List subtasks of a task",
    description="Subtasks in display order",
)
async def get_task_subtasks(
    task_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> list[SubtaskResponse]:
    """
    Subtasks of a task in display order.

    Args:
        task_id: Parent task ID
        subtasks: Subtask repository

    Returns:
        List of SubtaskResponse objects, empty for an unknown task

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        return await subtasks.get_by_task_id(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/tasks/{task_id}/subtasks/stats",
    response_model=CompletionStats,
    summary="Subtask completion for a task",
)
async def get_task_subtask_stats(
    task_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> CompletionStats:
    """
    Completed and total subtasks of one task.
    """
    try:
        return await subtasks.get_task_completion_stats(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.put(
    "/tasks/{task_id}/subtasks/order",
    response_model=list[SubtaskResponse],
    summary="Reorder subtasks",
    description="Renumber the task's subtasks following the given ID order",
)
async def reorder_subtasks(
    task_id: str,
    payload: SubtaskReorder,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> list[SubtaskResponse]:
    """
    Renumber a task's subtasks.

    Args:
        task_id: Parent task ID
        payload: Subtask IDs in their new order
        subtasks: Subtask repository

    Returns:
        The task's subtasks in the new order

    Raises:
        HTTPException:
            - 400 if an ID does not belong to the task
            - 503 if the task store is unavailable
    """
    try:
        return await subtasks.reorder(task_id, payload.subtask_ids)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/subtasks/statistics", response_model=SubtaskStatistics, summary="Subtask statistics")
async def get_subtask_statistics(
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskStatistics:
    """
    Subtask totals across all tasks.
    """
    try:
        return await subtasks.get_statistics()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.post(
    "/subtasks",
    response_model=SubtaskResponse,
    summary="Create subtask",
    description="Append a subtask to the end of its task's list",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Parent task does not exist"}},
)
async def create_subtask(
    subtask_data: SubtaskCreate,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskResponse:
    """
    Append a subtask to its task.

    Args:
        subtask_data: Parent task ID and title
        subtasks: Subtask repository

    Returns:
        The created SubtaskResponse with the next free order

    Raises:
        HTTPException:
            - 400 if the parent task does not exist
            - 503 if the task store is unavailable
    """
    try:
        return await subtasks.create_subtask(subtask_data)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/subtasks/{subtask_id}", response_model=SubtaskResponse, summary="Get subtask")
async def get_subtask(
    subtask_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskResponse:
    """
    Get a subtask by ID.

    Raises:
        HTTPException:
            - 404 if the subtask does not exist
            - 503 if the task store is unavailable
    """
    try:
        subtask = await subtasks.get_by_id(subtask_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not subtask:
        raise _not_found(subtask_id)
    return subtask


@router.put("/subtasks/{subtask_id}", response_model=SubtaskResponse, summary="Update subtask")
async def update_subtask(
    subtask_id: str,
    subtask_data: SubtaskUpdate,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskResponse:
    """
    Partially update a subtask.

    Args:
        subtask_id: Subtask ID
        subtask_data: Title and/or completion; neither can be null
        subtasks: Subtask repository

    Returns:
        The updated SubtaskResponse

    Raises:
        HTTPException:
            - 400 if a value is rejected by the repository
            - 404 if the subtask does not exist
            - 503 if the task store is unavailable
    """
    try:
        subtask = await subtasks.update(subtask_id, subtask_data)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not subtask:
        raise _not_found(subtask_id)
    return subtask


@router.post(
    "/subtasks/{subtask_id}/toggle",
    response_model=SubtaskResponse,
    summary="Toggle subtask completion",
)
async def toggle_subtask(
    subtask_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskResponse:
    """
    Flip the completion of a subtask.
    """
    try:
        subtask = await subtasks.toggle_completion(subtask_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not subtask:
        raise _not_found(subtask_id)
    return subtask


async def _move(subtasks: SubtaskRepository, subtask_id: str, up: bool) -> SubtaskResponse:
    try:
        moved = await (subtasks.move_up(subtask_id) if up else subtasks.move_down(subtask_id))
        subtask = await subtasks.get_by_id(subtask_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not subtask:
        raise _not_found(subtask_id)
    if not moved:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Subtask is already {'first' if up else 'last'}",
        )
    return subtask


@router.post(
    "/subtasks/{subtask_id}/move-up",
    response_model=SubtaskResponse,
    summary="Move subtask up",
    responses={409: {"description": "Subtask is already first"}},
)
async def move_subtask_up(
    subtask_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskResponse:
    """
    Swap a subtask with the one before it.

    Raises:
        HTTPException:
            - 404 if the subtask does not exist
            - 409 if it is already first
    """
    return await _move(subtasks, subtask_id, up=True)


@router.post(
    "/subtasks/{subtask_id}/move-down",
    response_model=SubtaskResponse,
    summary="Move subtask down",
    responses={409: {"description": "Subtask is already last"}},
)
async def move_subtask_down(
    subtask_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> SubtaskResponse:
    """
    Swap a subtask with the one after it.

    Raises:
        HTTPException:
            - 404 if the subtask does not exist
            - 409 if it is already last
    """
    return await _move(subtasks, subtask_id, up=False)


@router.delete(
    "/subtasks/{subtask_id}",
    summary="Delete subtask",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_subtask(
    subtask_id: str,
    subtasks: SubtaskRepository = Depends(get_subtask_repository),
) -> None:
    """
    Delete a subtask.

    Raises:
        HTTPException:
            - 404 if the subtask does not exist
            - 503 if the task store is unavailable
    """
    try:
        deleted = await subtasks.delete(subtask_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not deleted:
        raise _not_found(subtask_id)
    return None  # 204 No Content
