"""
Time session API routes
Start/stop time tracking on tasks and read duration statistics
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from taskly.api.v1.schemas.time_session import (
    SessionEnd,
    SessionStart,
    TimeSessionResponse,
    TimeStats,
)
from taskly.core.dependencies import get_time_session_repository
from taskly.core.exceptions import DomainException, PersistenceException, ValidationException
from taskly.repositories.time_session import TimeSessionRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["time-sessions"],
    responses={
        404: {"description": "Session not found"},
        503: {"description": "Task store unavailable"},
    },
)


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Time session with ID {session_id} not found",
    )


def _unavailable(e: PersistenceException) -> HTTPException:
    logger.error(f"Time session store error: {e.message}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post(
    "/tasks/{task_id}/sessions/start",
    response_model=TimeSessionResponse,
    summary="Start tracking time",
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Task does not exist"},
        409: {"description": "Task already has an active session"},
    },
)
async def start_session(
    task_id: str,
    payload: Optional[SessionStart] = None,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> TimeSessionResponse:
    """
    Start tracking time on a task.

    Args:
        task_id: Task to track
        payload: Optional notes
        sessions: Time session repository

    Returns:
        The new, active TimeSessionResponse

    Raises:
        HTTPException:
            - 400 if the task does not exist
            - 409 if the task already has an active session
            - 503 if the task store is unavailable
    """
    try:
        return await sessions.start_session(task_id, payload.notes if payload else None)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except DomainException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/tasks/{task_id}/sessions",
    response_model=list[TimeSessionResponse],
    summary="Sessions of a task",
)
async def get_task_sessions(
    task_id: str,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> list[TimeSessionResponse]:
    """
    Sessions of a task, most recent first.
    """
    try:
        return await sessions.get_by_task_id(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/tasks/{task_id}/sessions/active",
    response_model=Optional[TimeSessionResponse],
    summary="Active session of a task",
    description="The running session, or null when the task is not being tracked",
)
async def get_active_session(
    task_id: str,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> Optional[TimeSessionResponse]:
    """
    The running session of a task, or null.

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        return await sessions.get_active_session(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/tasks/{task_id}/sessions/stats",
    response_model=TimeStats,
    summary="Time statistics for a task",
)
async def get_task_time_stats(
    task_id: str,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> TimeStats:
    """
    Duration statistics over the ended sessions of one task.
    """
    try:
        return await sessions.get_task_time_stats(task_id)
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get(
    "/sessions",
    response_model=list[TimeSessionResponse],
    summary="List sessions",
    description="All sessions, or only active ones, or those started in a time range",
)
async def get_sessions(
    active: Optional[bool] = Query(None, description="true: running only, false: ended only"),
    start: Optional[datetime] = Query(None, description="Started at or after"),
    end: Optional[datetime] = Query(None, description="Started before"),
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> list[TimeSessionResponse]:
    """
    List sessions.

    A start/end pair takes precedence over the active filter.

    Args:
        active: true for running sessions only, false for ended ones only
        start: Sessions started at or after this instant
        end: Sessions started before this instant
        sessions: Time session repository

    Returns:
        List of TimeSessionResponse objects

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        if start is not None and end is not None:
            return await sessions.get_sessions_in_range(start, end)
        if active is True:
            return await sessions.get_all_active_sessions()
        if active is False:
            return await sessions.get_completed_sessions()
        return await sessions.get_all()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/sessions/today", response_model=list[TimeSessionResponse], summary="Today's sessions")
async def get_today_sessions(
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> list[TimeSessionResponse]:
    """
    Sessions started during the current UTC day.
    """
    try:
        return await sessions.get_today_sessions()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/sessions/stats", response_model=TimeStats, summary="Overall time statistics")
async def get_overall_time_stats(
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> TimeStats:
    """
    Duration statistics over every ended session.
    """
    try:
        return await sessions.get_overall_time_stats()
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.post("/sessions/stop-all", summary="Stop every active session")
async def stop_all_sessions(
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> dict[str, int]:
    """
    End every active session.

    Returns:
        {"stopped": <number of sessions ended>}

    Raises:
        HTTPException: 503 if the task store is unavailable
    """
    try:
        return {"stopped": await sessions.stop_all_active_sessions()}
    except PersistenceException as e:
        raise _unavailable(e) from e


@router.get("/sessions/{session_id}", response_model=TimeSessionResponse, summary="Get session")
async def get_session(
    session_id: str,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> TimeSessionResponse:
    """
    Get a session by ID.

    Raises:
        HTTPException:
            - 404 if the session does not exist
            - 503 if the task store is unavailable
    """
    try:
        time_session = await sessions.get_by_id(session_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not time_session:
        raise _not_found(session_id)
    return time_session


@router.post(
    "/sessions/{session_id}/end",
    response_model=TimeSessionResponse,
    summary="Stop tracking time",
    responses={409: {"description": "Session has already ended"}},
)
async def end_session(
    session_id: str,
    payload: Optional[SessionEnd] = None,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> TimeSessionResponse:
    """
    Stop tracking time.

    The duration is recorded in whole seconds.

    Args:
        session_id: Session to end
        payload: Notes replacing the session notes when given
        sessions: Time session repository

    Returns:
        The ended TimeSessionResponse

    Raises:
        HTTPException:
            - 404 if the session does not exist
            - 409 if the session has already ended
            - 503 if the task store is unavailable
    """
    try:
        time_session = await sessions.end_session(session_id, payload.notes if payload else None)
    except DomainException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not time_session:
        raise _not_found(session_id)
    return time_session


@router.delete(
    "/sessions/{session_id}",
    summary="Delete session",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_session(
    session_id: str,
    sessions: TimeSessionRepository = Depends(get_time_session_repository),
) -> None:
    """
    Delete a session.

    Raises:
        HTTPException:
            - 404 if the session does not exist
            - 503 if the task store is unavailable
    """
    try:
        deleted = await sessions.delete(session_id)
    except PersistenceException as e:
        raise _unavailable(e) from e
    if not deleted:
        raise _not_found(session_id)
    return None  # 204 No Content
