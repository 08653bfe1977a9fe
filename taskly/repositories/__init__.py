"""
Repositories: one per synchronized entity, all sharing the outbox behaviour
of BaseRepository
"""

from taskly.repositories.base import BaseRepository
from taskly.repositories.category import CategoryRepository
from taskly.repositories.subtask import SubtaskRepository
from taskly.repositories.task import TaskRepository
from taskly.repositories.time_session import TimeSessionRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "SubtaskRepository",
    "TaskRepository",
    "TimeSessionRepository",
]
