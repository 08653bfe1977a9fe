"""
Subtask repository
Ordering within a task, completion helpers and statistics
"""
import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskly.api.v1.schemas.subtask import CompletionStats, SubtaskStatistics
from taskly.core.exceptions import ValidationException
from taskly.models.subtask import Subtask
from taskly.models.task import Task
from taskly.repositories.base import BaseRepository, EntityData

logger = logging.getLogger(__name__)


def _percentage(done: int, total: int) -> int:
    return round(done / total * 100) if total else 0


class SubtaskRepository(BaseRepository[Subtask]):
    """Repository for subtasks"""

    model = Subtask
    required_text_fields = ("title",)

    async def _check_references(self, session: AsyncSession, values: dict[str, Any]) -> None:
        task_id = values.get("task_id")
        if task_id is not None and await session.get(Task, task_id) is None:
            raise ValidationException(f"Task with ID {task_id} not found")

    async def create_subtask(self, data: EntityData) -> Subtask:
        """
        Append a subtask to its task

        The order is one past the highest existing order for the task (the
        first subtask gets 1), computed inside the insert transaction.

        Raises:
            ValidationException: If the parent task does not exist
        """
        values = self._prepare(data, creating=True)
        if not values.get("task_id"):
            raise ValidationException("Subtask requires a task_id")

        async with self._transaction() as session:
            await self._check_references(session, values)
            highest = await session.scalar(
                select(func.max(Subtask.order)).where(Subtask.task_id == values["task_id"])
            )
            values["order"] = (highest or 0) + 1
            subtask = Subtask(**values)
            await self._insert(session, subtask)

        logger.info(f"Created subtask {subtask.id} at position {subtask.order}")
        return subtask

    async def create(self, data: EntityData) -> Subtask:
        return await self.create_subtask(data)

    async def get_by_task_id(self, task_id: str) -> list[Subtask]:
        async with self._session() as session:
            result = await session.execute(
                select(Subtask)
                .where(Subtask.task_id == task_id)
                .order_by(Subtask.order.asc(), Subtask.created_at.asc())
            )
            return list(result.scalars().all())

    async def toggle_completion(self, subtask_id: str) -> Optional[Subtask]:
        async with self._transaction() as session:
            subtask = await session.get(Subtask, subtask_id)
            if subtask is None:
                return None
            await self._apply_update(session, subtask, {"completed": not subtask.completed})
        return subtask

    async def bulk_set_completion(self, subtask_ids: list[str], completed: bool) -> int:
        """
        Set completion on several subtasks in one transaction

        Returns:
            Number of subtasks changed; ones already in that state are skipped
        """
        if not subtask_ids:
            return 0

        changed = 0
        async with self._transaction() as session:
            result = await session.execute(select(Subtask).where(Subtask.id.in_(subtask_ids)))
            for subtask in result.scalars().all():
                if subtask.completed != completed:
                    await self._apply_update(session, subtask, {"completed": completed})
                    changed += 1
        return changed

    async def _swap_with_neighbour(self, subtask_id: str, upwards: bool) -> bool:
        async with self._transaction() as session:
            subtask = await session.get(Subtask, subtask_id)
            if subtask is None:
                return False

            query = select(Subtask).where(Subtask.task_id == subtask.task_id)
            if upwards:
                query = query.where(Subtask.order < subtask.order).order_by(Subtask.order.desc())
            else:
                query = query.where(Subtask.order > subtask.order).order_by(Subtask.order.asc())
            neighbour = (await session.execute(query.limit(1))).scalar_one_or_none()
            if neighbour is None:
                return False

            own_order, neighbour_order = subtask.order, neighbour.order
            await self._apply_update(session, subtask, {"order": neighbour_order})
            await self._apply_update(session, neighbour, {"order": own_order})
        return True

    async def move_up(self, subtask_id: str) -> bool:
        """
        Swap positions with the previous sibling

        Returns:
            False if the subtask is missing or already first
        """
        return await self._swap_with_neighbour(subtask_id, upwards=True)

    async def move_down(self, subtask_id: str) -> bool:
        """
        Swap positions with the next sibling

        Returns:
            False if the subtask is missing or already last
        """
        return await self._swap_with_neighbour(subtask_id, upwards=False)

    async def reorder(self, task_id: str, subtask_ids: list[str]) -> list[Subtask]:
        """
        Renumber a task's subtasks 1..n following `subtask_ids`

        Raises:
            ValidationException: If an ID does not belong to the task
        """
        async with self._transaction() as session:
            result = await session.execute(select(Subtask).where(Subtask.task_id == task_id))
            by_id = {s.id: s for s in result.scalars().all()}

            foreign = [sid for sid in subtask_ids if sid not in by_id]
            if foreign:
                raise ValidationException(
                    f"Subtasks do not belong to task {task_id}: {', '.join(foreign)}"
                )

            for position, subtask_id in enumerate(subtask_ids, start=1):
                subtask = by_id[subtask_id]
                if subtask.order != position:
                    await self._apply_update(session, subtask, {"order": position})

        return await self.get_by_task_id(task_id)

    async def get_task_completion_stats(self, task_id: str) -> CompletionStats:
        subtasks = await self.get_by_task_id(task_id)
        done = sum(1 for s in subtasks if s.completed)
        return CompletionStats(
            total=len(subtasks), completed=done, percentage=_percentage(done, len(subtasks))
        )

    async def _by_completion(self, completed: bool) -> list[Subtask]:
        async with self._session() as session:
            result = await session.execute(
                select(Subtask)
                .where(Subtask.completed.is_(completed))
                .order_by(Subtask.created_at.desc())
            )
            return list(result.scalars().all())

    async def get_completed(self) -> list[Subtask]:
        return await self._by_completion(True)

    async def get_pending(self) -> list[Subtask]:
        return await self._by_completion(False)

    async def get_statistics(self) -> SubtaskStatistics:
        subtasks = await self.get_all()
        total = len(subtasks)
        done = sum(1 for s in subtasks if s.completed)
        parents = {s.task_id for s in subtasks}
        return SubtaskStatistics(
            total=total,
            completed=done,
            pending=total - done,
            completion_percentage=_percentage(done, total),
            average_subtasks_per_task=round(total / len(parents), 2) if parents else 0,
        )

    async def delete_by_task_id(self, task_id: str) -> int:
        """
        Delete every subtask of a task

        Returns:
            Number of subtasks deleted
        """
        async with self._transaction() as session:
            result = await session.execute(select(Subtask).where(Subtask.task_id == task_id))
            subtasks = list(result.scalars().all())
            for subtask in subtasks:
                await self._remove(session, subtask)
        return len(subtasks)
