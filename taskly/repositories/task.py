"""
Task repository
Filtering, completion cascade, statistics and cascading delete for tasks
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskly.api.v1.schemas.subtask import SubtaskResponse
from taskly.api.v1.schemas.task import (
    PriorityCounts,
    TaskDetailResponse,
    TaskFilter,
    TaskStatistics,
)
from taskly.api.v1.schemas.time_session import TimeSessionResponse
from taskly.core.exceptions import ValidationException
from taskly.models.category import Category
from taskly.models.mixins import utcnow
from taskly.models.subtask import Subtask
from taskly.models.task import Task, TaskPriority
from taskly.models.time_session import TimeSession
from taskly.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class TaskRepository(BaseRepository[Task]):
    """Repository for tasks"""

    model = Task
    required_text_fields = ("title",)

    async def _check_references(self, session: AsyncSession, values: dict[str, Any]) -> None:
        category_id = values.get("category_id")
        if category_id is not None and await session.get(Category, category_id) is None:
            raise ValidationException(f"Category with ID {category_id} not found")

    async def _complete_subtasks(self, session: AsyncSession, task_id: str) -> int:
        """Complete every unfinished subtask of a task; returns how many changed"""
        result = await session.execute(
            select(Subtask).where(
                Subtask.task_id == task_id,
                Subtask.completed.is_(False),
            )
        )
        cascaded = 0
        for subtask in result.scalars().all():
            await self._apply_update(session, subtask, {"completed": True})
            cascaded += 1
        return cascaded

    async def _after_update(
        self, session: AsyncSession, entity: Task, previous: dict[str, Any]
    ) -> None:
        # Completing through a plain update cascades like toggle_completion
        if entity.completed and previous.get("completed") is False:
            cascaded = await self._complete_subtasks(session, entity.id)
            if cascaded:
                logger.info(f"Task {entity.id} completed, cascaded to {cascaded} subtasks")

    async def get_filtered(self, task_filter: Optional[TaskFilter] = None) -> list[Task]:
        """
        Tasks matching every criterion that is set, newest first

        Args:
            task_filter: Optional criteria; None returns every task

        Returns:
            List of matching tasks
        """
        task_filter = task_filter or TaskFilter()
        query = select(Task)

        if task_filter.completed is not None:
            query = query.where(Task.completed == task_filter.completed)

        if task_filter.priority is not None:
            query = query.where(Task.priority == TaskPriority(task_filter.priority).value)

        if task_filter.category_id:
            query = query.where(Task.category_id == task_filter.category_id)

        if task_filter.due_from is not None:
            query = query.where(Task.due_date >= task_filter.due_from)

        if task_filter.due_to is not None:
            query = query.where(Task.due_date <= task_filter.due_to)

        if task_filter.search:
            needle = task_filter.search.strip().lower()
            query = query.where(
                or_(
                    func.lower(Task.title).contains(needle, autoescape=True),
                    func.lower(Task.description).contains(needle, autoescape=True),
                )
            )

        query = query.order_by(Task.created_at.desc())

        async with self._session() as session:
            result = await session.execute(query)
            tasks = list(result.scalars().all())

        # Tags are a JSON list; matching is exact per element
        if task_filter.tag:
            tasks = [t for t in tasks if t.tags and task_filter.tag in t.tags]
        return tasks

    async def get_by_category(self, category_id: str) -> list[Task]:
        return await self.get_filtered(TaskFilter(category_id=category_id))

    async def get_by_tag(self, tag: str) -> list[Task]:
        return await self.get_filtered(TaskFilter(tag=tag))

    async def get_overdue(self, now: Optional[datetime] = None) -> list[Task]:
        """Incomplete tasks whose due date has passed, earliest due first"""
        now = now or utcnow()
        async with self._session() as session:
            result = await session.execute(
                select(Task)
                .where(
                    Task.completed.is_(False),
                    Task.due_date.is_not(None),
                    Task.due_date < now,
                )
                .order_by(Task.due_date.asc())
            )
            return list(result.scalars().all())

    async def get_due_today(self, now: Optional[datetime] = None) -> list[Task]:
        """Incomplete tasks due on the current (UTC) calendar day"""
        day_start = _start_of_day(now or utcnow())
        day_end = day_start + timedelta(days=1)
        async with self._session() as session:
            result = await session.execute(
                select(Task)
                .where(
                    Task.completed.is_(False),
                    and_(Task.due_date >= day_start, Task.due_date < day_end),
                )
                .order_by(Task.due_date.asc())
            )
            return list(result.scalars().all())

    async def toggle_completion(
        self, task_id: str, completed: Optional[bool] = None
    ) -> Optional[Task]:
        """
        Flip a task's completion, or set it explicitly when `completed` is given.

        Completing a task also completes every unfinished subtask. The
        cascade is one-way: un-completing leaves subtasks untouched and
        clears actual_time.

        Returns:
            Updated task if found, None otherwise
        """
        async with self._transaction() as session:
            task = await session.get(Task, task_id)
            if task is None:
                return None

            target = (not task.completed) if completed is None else completed
            values: dict[str, Any] = {"completed": target}
            if task.completed and not target:
                values["actual_time"] = None
            await self._apply_update(session, task, values)

            cascaded = await self._complete_subtasks(session, task_id) if target else 0

        logger.info(
            f"Task {task_id} completed={target}"
            + (f", cascaded to {cascaded} subtasks" if cascaded else "")
        )
        return task

    async def update_tags(self, task_id: str, tags: list[str]) -> Optional[Task]:
        return await self.update(task_id, {"tags": list(tags)})

    async def bulk_update_category(
        self, task_ids: list[str], category_id: Optional[str]
    ) -> int:
        """
        Move several tasks to one category (or clear it)

        Returns:
            Number of tasks updated; unknown IDs are skipped
        """
        if not task_ids:
            return 0

        async with self._transaction() as session:
            await self._check_references(session, {"category_id": category_id})
            result = await session.execute(select(Task).where(Task.id.in_(task_ids)))
            tasks = list(result.scalars().all())
            for task in tasks:
                await self._apply_update(session, task, {"category_id": category_id})

        logger.info(f"Moved {len(tasks)} tasks to category {category_id}")
        return len(tasks)

    async def get_with_details(self, task_id: str) -> Optional[TaskDetailResponse]:
        """
        Task with subtasks, time sessions, total time and completion percentage

        Returns:
            TaskDetailResponse if found, None otherwise
        """
        async with self._session() as session:
            task = await session.get(Task, task_id)
            if task is None:
                return None

            subtasks = list(
                (
                    await session.execute(
                        select(Subtask)
                        .where(Subtask.task_id == task_id)
                        .order_by(Subtask.order.asc(), Subtask.created_at.asc())
                    )
                ).scalars().all()
            )
            sessions = list(
                (
                    await session.execute(
                        select(TimeSession)
                        .where(TimeSession.task_id == task_id)
                        .order_by(TimeSession.created_at.desc())
                    )
                ).scalars().all()
            )

        total_minutes = sum(round(s.duration / 60) for s in sessions if s.duration)

        if task.completed or not subtasks:
            completion = 100 if task.completed else 0
        else:
            done = sum(1 for s in subtasks if s.completed)
            completion = round(done / len(subtasks) * 100)

        detail = TaskDetailResponse.model_validate(task)
        detail.subtasks = [SubtaskResponse.model_validate(s) for s in subtasks]
        detail.time_sessions = [TimeSessionResponse.model_validate(s) for s in sessions]
        detail.total_time_spent = total_minutes
        detail.completion_percentage = completion
        return detail

    async def get_statistics(self, now: Optional[datetime] = None) -> TaskStatistics:
        """
        Counts by completion, priority and due state

        Overdue means due before `now` and not completed; due today means
        due on the current UTC day and not completed.
        """
        now = now or utcnow()
        tasks = await self.get_all()
        overdue = await self.get_overdue(now)
        due_today = await self.get_due_today(now)

        counts = {priority.value: 0 for priority in TaskPriority}
        for task in tasks:
            if task.priority in counts:
                counts[task.priority] += 1

        completed = sum(1 for t in tasks if t.completed)
        return TaskStatistics(
            total=len(tasks),
            completed=completed,
            pending=len(tasks) - completed,
            overdue=len(overdue),
            due_today=len(due_today),
            by_priority=PriorityCounts(**counts),
        )

    async def delete(self, entity_id: str) -> bool:
        """
        Delete a task together with its subtasks and time sessions

        Children are removed first, each with its own outbox record, and
        everything happens in one transaction.

        Returns:
            True if deleted, False if not found
        """
        async with self._transaction() as session:
            task = await session.get(Task, entity_id)
            if task is None:
                return False

            subtasks = (
                await session.execute(select(Subtask).where(Subtask.task_id == entity_id))
            ).scalars().all()
            sessions = (
                await session.execute(select(TimeSession).where(TimeSession.task_id == entity_id))
            ).scalars().all()

            for child in [*subtasks, *sessions]:
                await self._remove(session, child)
            await self._remove(session, task)

        logger.info(
            f"Deleted task {entity_id} with {len(subtasks)} subtasks and {len(sessions)} sessions"
        )
        return True
