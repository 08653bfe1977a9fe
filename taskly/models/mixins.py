"""
Shared column types and columns for synchronized entities

Every entity the outbox tracks carries the same bookkeeping columns:
an opaque string id, a sync status, and created/updated timestamps.
Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_mixins.html
"""
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class SyncStatus(str, Enum):
    """Whether an entity's latest state has been propagated"""

    SYNCED = "synced"
    PENDING = "pending"
    CONFLICT = "conflict"  # reserved; nothing produces it yet


def utcnow() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return str(uuid.uuid4())


def to_utc(value: Union[datetime, date, str]) -> datetime:
    """
    Aware UTC datetime from a datetime, date or ISO-8601 string

    Naive values are taken to be UTC already.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class IsoDateTime(TypeDecorator):
    """
    Timestamp stored as an ISO-8601 string in UTC.

    Values are always written with microsecond precision and a +00:00
    offset so that string comparison in SQL matches chronological order.
    Reference: https://docs.sqlalchemy.org/en/20/core/custom_types.html#augmenting-existing-types
    """

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_utc(value).isoformat(timespec="microseconds")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


class SyncedEntityMixin:
    """
    Columns common to tasks, categories, subtasks and time sessions.

    Attributes:
        id: Opaque unique string (UUID4), assigned by the repository
        sync_status: synced | pending | conflict
        last_sync_at: When the entity was last marked synced
        created_at: Creation timestamp
        updated_at: Last modification timestamp (never earlier than created_at)
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)

    # Stored as plain strings; SyncStatus validates at the schema boundary
    sync_status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=SyncStatus.PENDING.value,
        index=True,
    )
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(IsoDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(IsoDateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        """
        JSON-serializable snapshot of every column.

        Used as the payload of outbox records.
        """
        snapshot: dict[str, Any] = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            snapshot[column.key] = value
        return snapshot
