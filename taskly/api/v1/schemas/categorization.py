"""
Categorization Pydantic schemas
"""
from typing import Optional

from pydantic import BaseModel, Field

from taskly.models.task import TaskPriority


class Suggestion(BaseModel):
    """
    Guessed category and priority for a task

    category is empty when nothing matched; confidence is 0..100.
    """
    category: str = ""
    priority: TaskPriority = TaskPriority.LOW
    confidence: int = Field(0, ge=0, le=100)


class CategorizeRequest(BaseModel):
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
