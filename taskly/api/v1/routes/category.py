"""
Category API routes
CRUD and statistics for categories; names are unique ignoring case
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from taskly.api.v1.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryStatistics,
    CategoryUpdate,
    CategoryWithStats,
)
from taskly.api.v1.schemas.task import TaskResponse
from taskly.core.dependencies import get_category_repository, get_task_repository
from taskly.core.exceptions import PersistenceException, ValidationException
from taskly.repositories.category import CategoryRepository
from taskly.repositories.task import TaskRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
    responses={
        404: {"description": "Category not found"},
        503: {"description": "Task store unavailable"},
    },
)


def _not_found(category_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Category with ID {category_id} not found",
    )


def _unavailable(e: PersistenceException) -> HTTPException:
    logger.error(f"Category store error: {e.message}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("", response_model=list[CategoryResponse], summary="List categories")
async def get_categories(
    categories: CategoryRepository = Depends(get_category_repository),
) -> list[CategoryResponse]:
    """
    List every category.

    The repository read is fail-soft: an unavailable store yields an empty list.
    """
    return await categories.get_all()


@router.get(
    "/stats",
    response_model=list[CategoryWithStats],
    summary="Categories with task counts",
    description="Every category with its task count and completion percentage",
)
async def get_categories_with_stats(
    order_by_task_count: bool = Query(False, description="Sort by task count, most used first"),
    empty_only: bool = Query(False, description="Only categories without tasks"),
    categories: CategoryRepository = Depends(get_category_repository),
) -> list[CategoryWithStats]:
    """
    Categories with task counts.

    Args:
        order_by_task_count: Most used categories first
        empty_only: Only categories that have no tasks
        categories: Category repository

    Returns:
        List of CategoryWithStats objects

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        if empty_only:
            return await categories.get_empty_categories()
        if order_by_task_count:
            return await categories.get_by_task_count(ascending=False)
        return await categories.get_all_with_stats()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/statistics", response_model=CategoryStatistics, summary="Category statistics")
async def get_category_statistics(
    categories: CategoryRepository = Depends(get_category_repository),
) -> CategoryStatistics:
    """
    Totals over all categories, including the most used one.
    """
    try:
        return await categories.get_statistics()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.post(
    "/defaults",
    response_model=list[CategoryResponse],
    summary="Create default categories",
    description="Create the starter categories whose names are not taken yet",
    status_code=status.HTTP_201_CREATED,
)
async def create_default_categories(
    categories: CategoryRepository = Depends(get_category_repository),
) -> list[CategoryResponse]:
    """
    Create the starter categories.

    Names that already exist (ignoring case) are skipped, so calling this
    twice creates nothing the second time.

    Returns:
        The categories created by this call

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        return await categories.create_default_categories()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/{category_id}", response_model=CategoryWithStats, summary="Get category by ID")
async def get_category(
    category_id: str,
    categories: CategoryRepository = Depends(get_category_repository),
) -> CategoryWithStats:
    """
    Get a category by ID with its task counts.

    Args:
        category_id: Category ID
        categories: Category repository

    Returns:
        CategoryWithStats object

    Raises:
        HTTPException:
            - 404 if the category does not exist
            - 503 if the task store is unavailable
    """
    try:
        category = await categories.get_with_stats(category_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not category:
        raise _not_found(category_id)
    return category


@router.get(
    "/{category_id}/tasks",
    response_model=list[TaskResponse],
    summary="Tasks in a category",
)
async def get_category_tasks(
    category_id: str,
    tasks: TaskRepository = Depends(get_task_repository),
) -> list[TaskResponse]:
    """
    Tasks assigned to a category, newest first.
    """
    try:
        return await tasks.get_by_category(category_id)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.post(
    "",
    response_model=CategoryResponse,
    summary="Create category",
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "A category with this name already exists"}},
)
async def create_category(
    category_data: CategoryCreate,
    categories: CategoryRepository = Depends(get_category_repository),
) -> CategoryResponse:
    """
    Create a category.

    Args:
        category_data: Name, color and optional icon
        categories: Category repository

    Returns:
        The created CategoryResponse

    Raises:
        HTTPException:
            - 409 if a category with this name exists (ignoring case)
            - 503 if the task store is unavailable
    """
    try:
        return await categories.create_category(category_data)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update category",
    responses={409: {"description": "A category with this name already exists"}},
)
async def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    categories: CategoryRepository = Depends(get_category_repository),
) -> CategoryResponse:
    """
    Partially update a category.

    Args:
        category_id: Category ID
        category_data: Fields to change; name and color cannot be null
        categories: Category repository

    Returns:
        The updated CategoryResponse

    Raises:
        HTTPException:
            - 404 if the category does not exist
            - 409 if the new name belongs to another category
            - 503 if the task store is unavailable
    """
    try:
        category = await categories.update_category(category_id, category_data)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not category:
        raise _not_found(category_id)
    return category


@router.delete(
    "/{category_id}",
    summary="Delete category",
    description=(
        "Delete a category. Its tasks move to reassign_to_id, or become "
        "uncategorized when no target is given."
    ),
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"description": "Invalid reassignment target"}},
)
async def delete_category(
    category_id: str,
    reassign_to_id: Optional[str] = Query(None, description="Category receiving the tasks"),
    categories: CategoryRepository = Depends(get_category_repository),
) -> None:
    """
    Delete a category.

    Its tasks are moved to reassign_to_id, or left uncategorized.

    Args:
        category_id: Category to delete
        reassign_to_id: Category receiving the tasks
        categories: Category repository

    Raises:
        HTTPException:
            - 400 if the reassignment target is missing or is the deleted category
            - 404 if the category does not exist
            - 503 if the task store is unavailable
    """
    try:
        deleted = await categories.delete_category(category_id, reassign_to_id)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not deleted:
        raise _not_found(category_id)
    return None  # 204 No Content
