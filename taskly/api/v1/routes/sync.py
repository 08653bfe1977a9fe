"""
Sync API routes
Trigger outbox draining and inspect what is still pending
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from taskly.api.v1.schemas.sync import (
    SyncRecordResponse,
    SyncResult,
    SyncStatistics,
    SyncStatusResponse,
)
from taskly.core.dependencies import get_sync_service
from taskly.core.exceptions import PersistenceException, SyncInProgressException
from taskly.services.sync import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sync",
    tags=["sync"],
    responses={503: {"description": "Task store unavailable"}},
)


@router.post(
    "",
    response_model=SyncResult,
    summary="Run a sync",
    description="Drain every pending sync record, oldest first",
    responses={409: {"description": "A sync is already running"}},
)
async def perform_sync(sync: SyncService = Depends(get_sync_service)) -> SyncResult:
    """
    Drain every pending sync record, oldest first.

    A record that fails stays queued with its retry count raised; the others
    are still processed.

    Args:
        sync: Shared sync service

    Returns:
        SyncResult with synced and failed counts and one error line per failure

    Raises:
        HTTPException: 409 if a sync is already running
    """
    try:
        return await sync.perform_sync()
    except SyncInProgressException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e


@router.get("/status", response_model=SyncStatusResponse, summary="Sync status")
async def get_sync_status(sync: SyncService = Depends(get_sync_service)) -> SyncStatusResponse:
    """
    Current sync state plus outbox statistics.

    Raises:
        HTTPException: 503 if the outbox cannot be read
    """
    try:
        statistics = await sync.get_sync_statistics()
    except PersistenceException as e:
        logger.error(f"Failed to read sync statistics: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message
        ) from e
    return SyncStatusResponse(
        state=sync.state,
        in_progress=sync.is_sync_in_progress,
        statistics=statistics,
    )


@router.get(
    "/pending",
    response_model=list[SyncRecordResponse],
    summary="Pending sync records",
    description="Records still waiting to be synced, oldest first",
)
async def get_pending_items(
    sync: SyncService = Depends(get_sync_service),
) -> list[SyncRecordResponse]:
    """
    Records still waiting to be synced, oldest first.
    """
    try:
        return await sync.get_pending_sync_items()
    except PersistenceException as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message
        ) from e


@router.get("/statistics", response_model=SyncStatistics, summary="Sync statistics")
async def get_sync_statistics(sync: SyncService = Depends(get_sync_service)) -> SyncStatistics:
    """
    Pending and failed counts, the oldest and the most retried record.

    Raises:
        HTTPException: 503 if the outbox cannot be read
    """
    try:
        return await sync.get_sync_statistics()
    except PersistenceException as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message
        ) from e


@router.delete(
    "/pending",
    summary="Clear pending sync records",
    description="Drop every pending record without syncing it",
)
async def clear_pending_items(sync: SyncService = Depends(get_sync_service)) -> dict[str, int]:
    """
    Drop every pending record without syncing it.

    Returns:
        {"cleared": <number of records removed>}

    Raises:
        HTTPException: 503 if the outbox cannot be cleared
    """
    try:
        return {"cleared": await sync.clear_sync_metadata()}
    except PersistenceException as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message
        ) from e


@router.post(
    "/{table_name}/{record_id}",
    summary="Sync one record",
    description="Drain only the pending records of a single entity",
    responses={404: {"description": "Nothing pending for this record, or it failed"}},
)
async def force_sync_record(
    table_name: str,
    record_id: str,
    sync: SyncService = Depends(get_sync_service),
) -> dict[str, bool]:
    """
    Sync only the pending records of one entity.

    Args:
        table_name: Entity table, e.g. "tasks"
        record_id: Entity ID
        sync: Shared sync service

    Returns:
        {"synced": true}

    Raises:
        HTTPException: 404 if nothing was pending for the entity or a record failed
    """
    synced = await sync.force_sync_record(table_name, record_id)
    if not synced:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No sync records could be synced for {table_name} {record_id}",
        )
    return {"synced": True}
