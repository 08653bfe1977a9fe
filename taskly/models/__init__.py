"""
Database models
All SQLAlchemy models should be defined here or imported here
"""

from taskly.core.database import Base
from taskly.models.category import Category
from taskly.models.mixins import IsoDateTime, SyncedEntityMixin, SyncStatus, generate_id, utcnow
from taskly.models.subtask import Subtask
from taskly.models.sync_record import SyncOperation, SyncRecord
from taskly.models.task import Task, TaskPriority
from taskly.models.time_session import TimeSession

__all__ = [
    "Base",
    "Category",
    "IsoDateTime",
    "Subtask",
    "SyncOperation",
    "SyncRecord",
    "SyncStatus",
    "SyncedEntityMixin",
    "Task",
    "TaskPriority",
    "TimeSession",
    "generate_id",
    "utcnow",
]
