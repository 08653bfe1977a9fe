"""
Service container
Builds the repositories and the sync service once per process
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskly.repositories.base import BaseRepository
from taskly.repositories.category import CategoryRepository
from taskly.repositories.subtask import SubtaskRepository
from taskly.repositories.task import TaskRepository
from taskly.repositories.time_session import TimeSessionRepository
from taskly.services.sync import PushFn, SyncService


@dataclass
class ServiceContainer:
    session_maker: async_sessionmaker[AsyncSession]
    tasks: TaskRepository
    categories: CategoryRepository
    subtasks: SubtaskRepository
    time_sessions: TimeSessionRepository
    sync: SyncService

    @property
    def repositories(self) -> dict[str, BaseRepository]:
        """Repositories keyed by the table name used in sync records"""
        return {
            repository.table_name: repository
            for repository in (self.tasks, self.categories, self.subtasks, self.time_sessions)
        }


def build_container(
    session_maker: async_sessionmaker[AsyncSession],
    push: Optional[PushFn] = None,
) -> ServiceContainer:
    """
    Wire every repository and the sync service around one session factory

    Args:
        session_maker: Session factory for the task store
        push: Remote push used by the sync service; local no-op by default
    """
    tasks = TaskRepository(session_maker)
    categories = CategoryRepository(session_maker)
    subtasks = SubtaskRepository(session_maker)
    time_sessions = TimeSessionRepository(session_maker)

    registry = {
        repository.table_name: repository
        for repository in (tasks, categories, subtasks, time_sessions)
    }

    return ServiceContainer(
        session_maker=session_maker,
        tasks=tasks,
        categories=categories,
        subtasks=subtasks,
        time_sessions=time_sessions,
        sync=SyncService(session_maker, registry, push=push),
    )
