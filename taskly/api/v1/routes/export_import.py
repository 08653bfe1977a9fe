"""
Export/import API routes
Download every task as JSON or CSV and load tasks back from either format
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from taskly.api.v1.schemas.export_import import ExportFormat, ImportRequest, ImportResponse
from taskly.core.dependencies import get_category_repository, get_task_repository
from taskly.core.exceptions import PersistenceException, ValidationException
from taskly.models.mixins import utcnow
from taskly.repositories.category import CategoryRepository
from taskly.repositories.task import TaskRepository
from taskly.services.export_import import export_from, import_tasks, import_tasks_into

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export-import"])

MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


@router.get(
    "/export",
    summary="Export tasks",
    response_class=PlainTextResponse,
    responses={200: {"description": "taskly-export-<date>.<format> attachment"}},
)
async def export_tasks(
    export_format: ExportFormat = Query(ExportFormat.JSON, alias="format"),
    tasks: TaskRepository = Depends(get_task_repository),
    categories: CategoryRepository = Depends(get_category_repository),
) -> PlainTextResponse:
    """
    Export every task as a JSON or CSV attachment.

    Args:
        export_format: json (default) or csv
        tasks: Task repository
        categories: Category repository, used to resolve category names

    Returns:
        PlainTextResponse with a Content-Disposition attachment header
    """
    body = await export_from(tasks, categories, export_format)
    filename = f"taskly-export-{utcnow().date().isoformat()}.{export_format.value}"
    return PlainTextResponse(
        content=body,
        media_type=MEDIA_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    response_model=ImportResponse,
    summary="Import tasks",
    description="Create tasks from a JSON or CSV export; missing categories are created",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Payload could not be parsed"}},
)
async def import_tasks_route(
    payload: ImportRequest,
    tasks: TaskRepository = Depends(get_task_repository),
    categories: CategoryRepository = Depends(get_category_repository),
) -> ImportResponse:
    """
    Create tasks from a JSON or CSV export.

    Categories are matched by name ignoring case and created when missing.

    Args:
        payload: Export text and its format
        tasks: Task repository
        categories: Category repository

    Returns:
        ImportResponse with the number of tasks created

    Raises:
        HTTPException:
            - 400 if the payload cannot be parsed
            - 503 if the task store is unavailable
    """
    try:
        rows = import_tasks(payload.data, payload.format)
        return await import_tasks_into(tasks, categories, rows)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except PersistenceException as e:
        logger.error(f"Import failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message
        ) from e
