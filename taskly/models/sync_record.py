"""
Outbox record model

One row per pending mutation of a synchronized entity. Rows are written by
the repositories and consumed exclusively by the sync service.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskly.core.database import Base
from taskly.models.mixins import IsoDateTime, generate_id, utcnow


class SyncOperation(str, Enum):
    """Kind of mutation recorded in the outbox."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class SyncRecord(Base):
    """
    Outbox entry keyed by (table_name, record_id)

    Attributes:
        id: Primary key
        table_name: Table of the affected entity (e.g. "tasks")
        record_id: Id of the affected entity
        operation: create | update | delete
        data: JSON snapshot of the entity at mutation time
        timestamp: When the mutation happened
        retry_count: Failed apply attempts so far
        error: Message of the last failed attempt
    """
    __tablename__ = "sync_metadata"

    __table_args__ = (
        Index("ix_sync_metadata_table_record", "table_name", "record_id"),
        Index("ix_sync_metadata_timestamp", "timestamp"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[str] = mapped_column(String(36), nullable=False)
    operation: Mapped[str] = mapped_column(String(10), nullable=False)
    data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False, default=utcnow)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<SyncRecord(id={self.id}, table='{self.table_name}', "
            f"record_id={self.record_id}, operation='{self.operation}')>"
        )
