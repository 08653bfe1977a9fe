"""
Category Pydantic schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskly.models.mixins import SyncStatus


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    color: str = Field(..., min_length=1, max_length=20, description="Color, e.g. #3B82F6")
    icon: Optional[str] = Field(None, max_length=50, description="Optional icon")


class CategoryCreate(CategoryBase):
    """
    Schema for creating a category
    Names are unique ignoring case; duplicates are rejected by the repository
    """
    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, min_length=1, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Name cannot be null")
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("color")
    @classmethod
    def reject_null_color(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Color cannot be null")
        return v


class CategoryResponse(CategoryBase):
    id: str
    sync_status: SyncStatus
    last_sync_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryWithStats(CategoryResponse):
    task_count: int = 0
    completed_task_count: int = 0
    completion_percentage: int = 0


class CategoryStatistics(BaseModel):
    total: int = 0
    with_tasks: int = 0
    empty: int = 0
    average_tasks_per_category: float = 0
    most_used_category: Optional[CategoryWithStats] = None
