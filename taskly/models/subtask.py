"""
Subtask database model
"""
from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskly.core.database import Base
from taskly.models.mixins import SyncedEntityMixin


class Subtask(SyncedEntityMixin, Base):
    """
    Checklist item belonging to a task

    Attributes:
        task_id: Parent task (deleted together with it)
        title: Subtask title
        completed: Whether the subtask is done
        order: Position within the parent task, ascending, first is 1
    """
    __tablename__ = "subtasks"

    __table_args__ = (
        Index("ix_subtasks_task_id", "task_id"),
    )

    task_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Subtask(id={self.id}, task_id={self.task_id}, order={self.order})>"
