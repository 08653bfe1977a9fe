"""
Time session Pydantic schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from taskly.models.mixins import SyncStatus


class SessionStart(BaseModel):
    notes: Optional[str] = Field(None, description="Optional notes for the session")


class SessionEnd(BaseModel):
    notes: Optional[str] = Field(None, description="Replaces the session notes when given")


class TimeSessionResponse(BaseModel):
    """
    A tracked session; end_time and duration are null while it is active
    """
    id: str
    task_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, description="Seconds, set once the session ends")
    notes: Optional[str] = None
    sync_status: SyncStatus
    last_sync_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeStats(BaseModel):
    """Duration statistics over completed sessions, all in seconds"""
    total_sessions: int = 0
    total_duration: int = 0
    average_session_duration: int = 0
    longest_session: int = 0
    shortest_session: int = 0
    total_duration_formatted: str = "0s"
