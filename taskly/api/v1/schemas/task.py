"""
Task Pydantic schemas
Request and response models for tasks, plus the filter and statistics shapes
returned by the task repository
Reference: https://docs.pydantic.dev/latest/concepts/models/
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskly.api.v1.schemas.subtask import SubtaskResponse
from taskly.api.v1.schemas.time_session import TimeSessionResponse
from taskly.models.mixins import SyncStatus
from taskly.models.task import TaskPriority


def _clean_title(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("Title cannot be null")
    v = v.strip()
    if not v:
        raise ValueError("Title must not be blank")
    return v


class TaskBase(BaseModel):
    """
    Base schema with common Task fields
    Used as base for create and response schemas
    """
    title: str = Field(..., min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    completed: bool = Field(default=False, description="Whether the task is completed")
    priority: TaskPriority = Field(default=TaskPriority.LOW, description="low, medium or high")
    due_date: Optional[datetime] = Field(None, description="Optional due date")
    category_id: Optional[str] = Field(None, description="Category ID")
    tags: Optional[list[str]] = Field(None, description="Ordered list of tags")
    estimated_time: Optional[int] = Field(None, ge=0, description="Estimate in minutes")
    actual_time: Optional[int] = Field(None, ge=0, description="Time spent in minutes")


class TaskCreate(TaskBase):
    """
    Schema for creating a new task
    id, timestamps and sync status are assigned by the repository
    """
    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> str:
        return _clean_title(v)


class TaskUpdate(BaseModel):
    """
    Schema for updating a task
    All fields are optional for partial updates; only fields that were
    explicitly set are written
    """
    title: Optional[str] = Field(None, min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    completed: Optional[bool] = Field(None, description="Whether the task is completed")
    priority: Optional[TaskPriority] = Field(None, description="low, medium or high")
    due_date: Optional[datetime] = Field(None, description="Due date (null clears it)")
    category_id: Optional[str] = Field(None, description="Category ID (null clears it)")
    tags: Optional[list[str]] = Field(None, description="Ordered list of tags")
    estimated_time: Optional[int] = Field(None, ge=0, description="Estimate in minutes")
    actual_time: Optional[int] = Field(None, ge=0, description="Time spent in minutes")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> str:
        return _clean_title(v)

    @field_validator("completed", "priority")
    @classmethod
    def reject_null(cls, v):
        # Omit the field to leave it unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class TaskResponse(TaskBase):
    """
    Schema for task response
    Includes all fields from TaskBase plus repository-assigned fields
    """
    id: str = Field(..., description="Task ID")
    sync_status: SyncStatus = Field(..., description="synced, pending or conflict")
    last_sync_at: Optional[datetime] = Field(None, description="When the task was last synced")
    created_at: datetime = Field(..., description="Timestamp when task was created")
    updated_at: datetime = Field(..., description="Timestamp when task was last updated")

    model_config = ConfigDict(from_attributes=True)


class TaskFilter(BaseModel):
    """
    Criteria for TaskRepository.get_filtered
    Unset criteria are ignored; set criteria are combined with AND
    """
    completed: Optional[bool] = None
    priority: Optional[TaskPriority] = None
    category_id: Optional[str] = None
    search: Optional[str] = Field(None, description="Substring of title or description")
    due_from: Optional[datetime] = Field(None, description="Inclusive lower bound of due_date")
    due_to: Optional[datetime] = Field(None, description="Inclusive upper bound of due_date")
    tag: Optional[str] = None


class PriorityCounts(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class TaskStatistics(BaseModel):
    """Aggregate counts over all tasks"""
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    due_today: int = 0
    by_priority: PriorityCounts = Field(default_factory=PriorityCounts)


class TaskDetailResponse(TaskResponse):
    """
    Task with its subtasks and time sessions

    total_time_spent is in minutes; completion_percentage is 100 for a
    completed task and the share of completed subtasks otherwise.
    """
    subtasks: list[SubtaskResponse] = Field(default_factory=list)
    time_sessions: list[TimeSessionResponse] = Field(default_factory=list)
    total_time_spent: int = 0
    completion_percentage: int = 0


class TagsUpdate(BaseModel):
    tags: list[str] = Field(..., description="Replacement list of tags")


class BulkCategoryUpdate(BaseModel):
    task_ids: list[str] = Field(..., min_length=1)
    category_id: Optional[str] = Field(None, description="Target category (null clears it)")
