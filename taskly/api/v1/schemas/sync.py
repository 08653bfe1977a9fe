"""
Sync Pydantic schemas
Progress events, results and statistics produced by the sync service
"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncState(str, Enum):
    """Sync service state machine."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


class SyncProgress(BaseModel):
    """Snapshot broadcast to progress listeners"""
    status: SyncState
    progress: int = Field(..., ge=0, le=100, description="Percent of items processed")
    message: str
    total_items: int = 0
    processed_items: int = 0


class SyncResult(BaseModel):
    success: bool
    synced_count: int = 0
    failed_count: int = 0
    errors: list[str] = Field(default_factory=list)


class SyncRecordResponse(BaseModel):
    id: str
    table_name: str
    record_id: str
    operation: str
    data: Optional[dict[str, Any]] = None
    timestamp: datetime
    retry_count: int
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SyncStatistics(BaseModel):
    pending_count: int = 0
    failed_count: int = Field(0, description="Pending records whose last attempt failed")
    oldest_pending_item: Optional[SyncRecordResponse] = None
    most_retried_item: Optional[SyncRecordResponse] = None


class SyncStatusResponse(BaseModel):
    state: SyncState
    in_progress: bool
    statistics: SyncStatistics
