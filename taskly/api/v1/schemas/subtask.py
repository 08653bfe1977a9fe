"""
Subtask Pydantic schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskly.models.mixins import SyncStatus


class SubtaskCreate(BaseModel):
    """
    Schema for creating a subtask
    order is assigned by the repository (next value within the task)
    """
    task_id: str = Field(..., description="Parent task ID")
    title: str = Field(..., min_length=1, max_length=200, description="Subtask title")
    completed: bool = Field(default=False)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v


class SubtaskUpdate(BaseModel):
    """Partial update; order changes go through move/reorder operations"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Title cannot be null")
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("completed")
    @classmethod
    def reject_null(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("completed cannot be null")
        return v


class SubtaskResponse(BaseModel):
    id: str
    task_id: str
    title: str
    completed: bool
    order: int
    sync_status: SyncStatus
    last_sync_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubtaskReorder(BaseModel):
    subtask_ids: list[str] = Field(..., description="Subtask IDs in their new order")


class CompletionStats(BaseModel):
    total: int = 0
    completed: int = 0
    percentage: int = 0


class SubtaskStatistics(BaseModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    completion_percentage: int = 0
    average_subtasks_per_task: float = 0
