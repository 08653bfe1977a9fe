"""
Task database model
SQLAlchemy model for tasks
Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskly.core.database import Base
from taskly.models.mixins import IsoDateTime, SyncedEntityMixin


class TaskPriority(str, Enum):
    """Task priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(SyncedEntityMixin, Base):
    """
    Task model representing a to-do item

    Attributes:
        title: Task title (required, non-empty)
        description: Optional longer description
        completed: Whether the task is completed (default: False)
        priority: low | medium | high (default: low)
        due_date: Optional due timestamp
        category_id: Optional reference to categories.id
        tags: Optional ordered list of tags, stored as JSON text
        estimated_time: Optional estimate in minutes
        actual_time: Optional time actually spent in minutes
    """
    __tablename__ = "tasks"

    __table_args__ = (
        Index("ix_tasks_category_id", "category_id"),
        Index("ix_tasks_completed", "completed"),
        Index("ix_tasks_due_date", "due_date"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Stored as plain strings; TaskPriority validates at the schema boundary
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=TaskPriority.LOW.value
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(IsoDateTime, nullable=True)

    # Nullable: deleting a category reassigns or clears this column
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("categories.id"), nullable=True
    )

    tags: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    estimated_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    actual_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        """String representation of Task"""
        return f"<Task(id={self.id}, title='{self.title}', completed={self.completed})>"
