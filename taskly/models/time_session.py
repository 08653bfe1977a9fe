"""
Time tracking session database model
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from taskly.core.database import Base
from taskly.models.mixins import IsoDateTime, SyncedEntityMixin


class TimeSession(SyncedEntityMixin, Base):
    """
    A span of time spent working on a task

    Attributes:
        task_id: Task being tracked (deleted together with it)
        start_time: When tracking started
        end_time: When tracking stopped; None while the session is active
        duration: Whole seconds between start and end, set only once ended
        notes: Optional free-form notes
    """
    __tablename__ = "time_sessions"

    __table_args__ = (
        Index("ix_time_sessions_task_id", "task_id"),
        # At most one active (end_time IS NULL) session per task
        Index(
            "uq_time_sessions_active_task",
            "task_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
        ),
    )

    task_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(IsoDateTime, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def __repr__(self) -> str:
        return f"<TimeSession(id={self.id}, task_id={self.task_id}, active={self.is_active})>"
