"""
Request dependencies
Hand the process-wide service container to route handlers
Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
"""
from fastapi import Depends, Request

from taskly.repositories.category import CategoryRepository
from taskly.repositories.subtask import SubtaskRepository
from taskly.repositories.task import TaskRepository
from taskly.repositories.time_session import TimeSessionRepository
from taskly.services.container import ServiceContainer
from taskly.services.sync import SyncService


def get_container(request: Request) -> ServiceContainer:
    """Container built at startup and stored on app.state"""
    return request.app.state.container


def get_task_repository(container: ServiceContainer = Depends(get_container)) -> TaskRepository:
    return container.tasks


def get_category_repository(
    container: ServiceContainer = Depends(get_container),
) -> CategoryRepository:
    return container.categories


def get_subtask_repository(
    container: ServiceContainer = Depends(get_container),
) -> SubtaskRepository:
    return container.subtasks


def get_time_session_repository(
    container: ServiceContainer = Depends(get_container),
) -> TimeSessionRepository:
    return container.time_sessions


def get_sync_service(container: ServiceContainer = Depends(get_container)) -> SyncService:
    return container.sync
