"""
Health check endpoints

- /health: the process answers (no store access)
- /health/ready: the task store answers; also reports the outbox backlog
  and the state of the sync service

Reference: https://kubernetes.io/docs/tasks/configure-pod-container/configure-liveness-readiness-startup-probes/
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from taskly.api.v1.schemas.sync import SyncState
from taskly.core.database import check_connection
from taskly.core.dependencies import get_sync_service
from taskly.core.exceptions import PersistenceException
from taskly.services.sync import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    message: str
    sync_state: Optional[SyncState] = None
    pending_sync_count: Optional[int] = Field(None, description="Outbox records not yet synced")


@router.get("", response_model=HealthResponse, summary="Liveness check")
async def health_check() -> HealthResponse:
    """
    Liveness check; does not touch the task store.
    """
    return HealthResponse(status="healthy", message="Service is running")


@router.get(
    "/ready",
    response_model=HealthResponse,
    summary="Readiness check",
    description="Checks that the task store answers and reports the sync backlog.",
    responses={503: {"description": "Task store unavailable"}},
)
async def readiness_check(
    request: Request,
    sync: SyncService = Depends(get_sync_service),
) -> HealthResponse:
    """
    Readiness check.

    Confirms the task store answers and reports the sync state and backlog.

    Args:
        request: Incoming request; the engine lives on app.state
        sync: Shared sync service

    Returns:
        HealthResponse with sync_state and pending_sync_count

    Raises:
        HTTPException: 503 if the task store does not answer
    """
    unavailable = HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Task store unavailable",
    )
    if not await check_connection(request.app.state.engine):
        raise unavailable

    try:
        pending = await sync.get_pending_sync_count()
    except PersistenceException as e:
        logger.warning(f"Readiness check could not read the outbox: {e.message}")
        raise unavailable from e

    return HealthResponse(
        status="ready",
        message="Task store is reachable",
        sync_state=sync.state,
        pending_sync_count=pending,
    )
