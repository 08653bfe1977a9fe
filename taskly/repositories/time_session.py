"""
Time session repository
Starting and stopping time tracking plus duration statistics
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskly.api.v1.schemas.time_session import TimeStats
from taskly.core.exceptions import DomainException, PersistenceException, ValidationException
from taskly.models.mixins import utcnow
from taskly.models.task import Task
from taskly.models.time_session import TimeSession
from taskly.repositories.base import BaseRepository, EntityData

logger = logging.getLogger(__name__)


def format_duration(seconds: int) -> str:
    """
    Human readable duration: "45s", "5m 3s", "1h 2m 3s"
    """
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _elapsed_seconds(start: datetime, end: datetime) -> int:
    return max(math.floor((end - start).total_seconds()), 0)


def _time_stats(sessions: list[TimeSession]) -> TimeStats:
    durations = [s.duration for s in sessions if s.end_time is not None and s.duration is not None]
    if not durations:
        return TimeStats()

    total = sum(durations)
    return TimeStats(
        total_sessions=len(durations),
        total_duration=total,
        average_session_duration=round(total / len(durations)),
        longest_session=max(durations),
        shortest_session=min(durations),
        total_duration_formatted=format_duration(total),
    )


class TimeSessionRepository(BaseRepository[TimeSession]):
    """Repository for time tracking sessions"""

    model = TimeSession

    async def _check_references(self, session: AsyncSession, values: dict[str, Any]) -> None:
        task_id = values.get("task_id")
        if task_id is not None and await session.get(Task, task_id) is None:
            raise ValidationException(f"Task with ID {task_id} not found")

    @staticmethod
    async def _find_active(session: AsyncSession, task_id: str) -> Optional[TimeSession]:
        result = await session.execute(
            select(TimeSession)
            .where(TimeSession.task_id == task_id, TimeSession.end_time.is_(None))
            .limit(1)
        )
        return result.scalar_one_or_none()

    def _prepare(self, data: EntityData, creating: bool = False) -> dict[str, Any]:
        values = super()._prepare(data, creating)
        # Duration is always derived from start/end
        values.pop("duration", None)
        return values

    async def create(self, data: EntityData) -> TimeSession:
        values = self._prepare(data, creating=True)
        values.setdefault("start_time", utcnow())
        end_time = values.get("end_time")
        if end_time is not None:
            values["duration"] = _elapsed_seconds(values["start_time"], end_time)

        async with self._transaction() as session:
            await self._check_references(session, values)
            time_session = TimeSession(**values)
            await self._insert(session, time_session)
        return time_session

    async def update(self, entity_id: str, data: EntityData) -> Optional[TimeSession]:
        values = self._prepare(data)
        async with self._transaction() as session:
            time_session = await session.get(TimeSession, entity_id)
            if time_session is None:
                return None
            await self._check_references(session, values)
            start = values.get("start_time", time_session.start_time)
            end = values.get("end_time", time_session.end_time)
            values["duration"] = _elapsed_seconds(start, end) if end is not None else None
            await self._apply_update(session, time_session, values)
        return time_session

    async def start_session(self, task_id: str, notes: Optional[str] = None) -> TimeSession:
        """
        Begin tracking time on a task

        Raises:
            ValidationException: If the task does not exist
            DomainException: If the task already has an active session
        """
        try:
            async with self._transaction() as session:
                await self._check_references(session, {"task_id": task_id})
                if await self._find_active(session, task_id) is not None:
                    raise DomainException(f"Task {task_id} already has an active session")

                time_session = TimeSession(task_id=task_id, start_time=utcnow(), notes=notes)
                await self._insert(session, time_session)
        except PersistenceException as e:
            # A concurrent start lost the race on the active-session index
            if isinstance(e.__cause__, IntegrityError):
                raise DomainException(f"Task {task_id} already has an active session") from e
            raise

        logger.info(f"Started session {time_session.id} for task {task_id}")
        return time_session

    async def end_session(
        self, session_id: str, notes: Optional[str] = None
    ) -> Optional[TimeSession]:
        """
        Stop an active session and record its duration in whole seconds

        Returns:
            The ended session, None if it does not exist

        Raises:
            DomainException: If the session has already ended
        """
        async with self._transaction() as session:
            time_session = await session.get(TimeSession, session_id)
            if time_session is None:
                return None
            if time_session.end_time is not None:
                raise DomainException(f"Session {session_id} has already ended")

            end_time = utcnow()
            values: dict[str, Any] = {
                "end_time": end_time,
                "duration": _elapsed_seconds(time_session.start_time, end_time),
            }
            if notes is not None:
                values["notes"] = notes
            await self._apply_update(session, time_session, values)

        logger.info(f"Ended session {session_id} after {time_session.duration}s")
        return time_session

    async def get_active_session(self, task_id: str) -> Optional[TimeSession]:
        async with self._session() as session:
            return await self._find_active(session, task_id)

    async def get_all_active_sessions(self) -> list[TimeSession]:
        async with self._session() as session:
            result = await session.execute(
                select(TimeSession)
                .where(TimeSession.end_time.is_(None))
                .order_by(TimeSession.start_time.asc())
            )
            return list(result.scalars().all())

    async def get_by_task_id(self, task_id: str) -> list[TimeSession]:
        async with self._session() as session:
            result = await session.execute(
                select(TimeSession)
                .where(TimeSession.task_id == task_id)
                .order_by(TimeSession.start_time.desc())
            )
            return list(result.scalars().all())

    async def get_completed_sessions(self) -> list[TimeSession]:
        async with self._session() as session:
            result = await session.execute(
                select(TimeSession)
                .where(TimeSession.end_time.is_not(None))
                .order_by(TimeSession.end_time.desc())
            )
            return list(result.scalars().all())

    async def get_sessions_in_range(self, start: datetime, end: datetime) -> list[TimeSession]:
        """Sessions that started within [start, end)"""
        async with self._session() as session:
            result = await session.execute(
                select(TimeSession)
                .where(and_(TimeSession.start_time >= start, TimeSession.start_time < end))
                .order_by(TimeSession.start_time.asc())
            )
            return list(result.scalars().all())

    async def get_today_sessions(self, now: Optional[datetime] = None) -> list[TimeSession]:
        day_start = (now or utcnow()).replace(hour=0, minute=0, second=0, microsecond=0)
        return await self.get_sessions_in_range(day_start, day_start + timedelta(days=1))

    async def get_task_time_stats(self, task_id: str) -> TimeStats:
        return _time_stats(await self.get_by_task_id(task_id))

    async def get_overall_time_stats(self) -> TimeStats:
        return _time_stats(await self.get_completed_sessions())

    async def stop_all_active_sessions(self) -> int:
        """
        End every active session

        Returns:
            Number of sessions stopped
        """
        end_time = utcnow()
        async with self._transaction() as session:
            result = await session.execute(
                select(TimeSession).where(TimeSession.end_time.is_(None))
            )
            active = list(result.scalars().all())
            for time_session in active:
                await self._apply_update(
                    session,
                    time_session,
                    {
                        "end_time": end_time,
                        "duration": _elapsed_seconds(time_session.start_time, end_time),
                    },
                )

        if active:
            logger.info(f"Stopped {len(active)} active sessions")
        return len(active)

    @staticmethod
    def current_session_duration(
        time_session: TimeSession, now: Optional[datetime] = None
    ) -> int:
        """Seconds elapsed so far, or the final duration once ended"""
        if time_session.end_time is not None:
            return time_session.duration or 0
        return _elapsed_seconds(time_session.start_time, now or utcnow())

    async def delete_by_task_id(self, task_id: str) -> int:
        """
        Delete every session of a task

        Returns:
            Number of sessions deleted
        """
        async with self._transaction() as session:
            result = await session.execute(
                select(TimeSession).where(TimeSession.task_id == task_id)
            )
            sessions = list(result.scalars().all())
            for time_session in sessions:
                await self._remove(session, time_session)
        return len(sessions)
