"""
Pydantic schemas for API request/response models
"""

from taskly.api.v1.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from taskly.api.v1.schemas.subtask import SubtaskCreate, SubtaskResponse, SubtaskUpdate
from taskly.api.v1.schemas.sync import SyncProgress, SyncResult, SyncState
from taskly.api.v1.schemas.task import TaskCreate, TaskFilter, TaskResponse, TaskUpdate
from taskly.api.v1.schemas.time_session import TimeSessionResponse, TimeStats

__all__ = [
    "CategoryCreate",
    "CategoryResponse",
    "CategoryUpdate",
    "SubtaskCreate",
    "SubtaskResponse",
    "SubtaskUpdate",
    "SyncProgress",
    "SyncResult",
    "SyncState",
    "TaskCreate",
    "TaskFilter",
    "TaskResponse",
    "TaskUpdate",
    "TimeSessionResponse",
    "TimeStats",
]
