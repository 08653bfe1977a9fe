"""
Category repository
Name uniqueness, delete-with-reassignment, per-category statistics and
starter categories
"""
import logging
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskly.api.v1.schemas.category import CategoryStatistics, CategoryWithStats
from taskly.core.exceptions import ValidationException
from taskly.models.category import Category
from taskly.models.task import Task
from taskly.repositories.base import BaseRepository, EntityData

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Work", "color": "#3B82F6", "icon": "💼"},
    {"name": "Personal", "color": "#10B981", "icon": "🏠"},
    {"name": "Health", "color": "#F59E0B", "icon": "🏃"},
    {"name": "Learning", "color": "#8B5CF6", "icon": "📚"},
    {"name": "Shopping", "color": "#EF4444", "icon": "🛒"},
]


class CategoryRepository(BaseRepository[Category]):
    """Repository for categories"""

    model = Category
    required_text_fields = ("name", "color")

    @staticmethod
    async def _find_by_name(session: AsyncSession, name: str) -> Optional[Category]:
        result = await session.execute(
            select(Category).where(func.lower(Category.name) == name.strip().lower()).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Optional[Category]:
        """Category with this name, ignoring case"""
        async with self._session() as session:
            return await self._find_by_name(session, name)

    async def name_exists(self, name: str, exclude_id: Optional[str] = None) -> bool:
        """
        Whether another category already uses this name (case-insensitive)

        Args:
            name: Candidate name
            exclude_id: Category to ignore (the one being renamed)
        """
        existing = await self.get_by_name(name)
        return existing is not None and existing.id != exclude_id

    async def create_category(self, data: EntityData) -> Category:
        """
        Create a category with a unique name

        Raises:
            ValidationException: If the name is already taken (ignoring case)
        """
        values = self._prepare(data, creating=True)
        name = values.get("name", "")
        async with self._transaction() as session:
            if await self._find_by_name(session, name) is not None:
                raise ValidationException(f'Category with name "{name}" already exists')
            category = Category(**values)
            await self._insert(session, category)

        logger.info(f"Created category '{category.name}' ({category.id})")
        return category

    async def create(self, data: EntityData) -> Category:
        return await self.create_category(data)

    async def update_category(self, category_id: str, data: EntityData) -> Optional[Category]:
        """
        Update a category; renames must keep names unique

        Returns:
            Updated category if found, None otherwise

        Raises:
            ValidationException: If the new name is used by another category
        """
        values = self._prepare(data)
        async with self._transaction() as session:
            category = await session.get(Category, category_id)
            if category is None:
                return None
            if values.get("name"):
                clash = await self._find_by_name(session, values["name"])
                if clash is not None and clash.id != category_id:
                    raise ValidationException(
                        f'Category with name "{values["name"]}" already exists'
                    )
            await self._apply_update(session, category, values)

        return category

    async def update(self, entity_id: str, data: EntityData) -> Optional[Category]:
        return await self.update_category(entity_id, data)

    async def delete_category(
        self, category_id: str, reassign_to_id: Optional[str] = None
    ) -> bool:
        """
        Delete a category without leaving tasks pointing at it

        Tasks in the category are moved to `reassign_to_id`, or have their
        category cleared when no target is given. Reassignment and deletion
        happen in one transaction.

        Returns:
            True if deleted, False if the category does not exist

        Raises:
            ValidationException: If the reassignment target is missing or is
                the category being deleted
        """
        async with self._transaction() as session:
            category = await session.get(Category, category_id)
            if category is None:
                return False

            if reassign_to_id is not None:
                if reassign_to_id == category_id:
                    raise ValidationException("Cannot reassign tasks to the category being deleted")
                if await session.get(Category, reassign_to_id) is None:
                    raise ValidationException(f"Category with ID {reassign_to_id} not found")

            result = await session.execute(select(Task).where(Task.category_id == category_id))
            tasks = list(result.scalars().all())
            for task in tasks:
                await self._apply_update(session, task, {"category_id": reassign_to_id})

            await self._remove(session, category)

        logger.info(
            f"Deleted category {category_id}; {len(tasks)} tasks moved to {reassign_to_id}"
        )
        return True

    async def delete(self, entity_id: str) -> bool:
        return await self.delete_category(entity_id)

    async def _task_counts(self) -> dict[str, tuple[int, int]]:
        """(total, completed) task counts keyed by category id"""
        async with self._session() as session:
            result = await session.execute(
                select(
                    Task.category_id,
                    func.count(Task.id),
                    func.sum(case((Task.completed.is_(True), 1), else_=0)),
                )
                .where(Task.category_id.is_not(None))
                .group_by(Task.category_id)
            )
            return {row[0]: (int(row[1]), int(row[2] or 0)) for row in result.all()}

    @staticmethod
    def _with_stats(category: Category, total: int, completed: int) -> CategoryWithStats:
        stats = CategoryWithStats.model_validate(category)
        stats.task_count = total
        stats.completed_task_count = completed
        stats.completion_percentage = round(completed / total * 100) if total else 0
        return stats

    async def get_with_stats(self, category_id: str) -> Optional[CategoryWithStats]:
        category = await self.get_by_id(category_id)
        if category is None:
            return None
        total, completed = (await self._task_counts()).get(category_id, (0, 0))
        return self._with_stats(category, total, completed)

    async def get_all_with_stats(self) -> list[CategoryWithStats]:
        categories = await self.get_all()
        counts = await self._task_counts()
        return [self._with_stats(c, *counts.get(c.id, (0, 0))) for c in categories]

    async def get_by_task_count(self, ascending: bool = False) -> list[CategoryWithStats]:
        return sorted(
            await self.get_all_with_stats(),
            key=lambda c: c.task_count,
            reverse=not ascending,
        )

    async def get_empty_categories(self) -> list[CategoryWithStats]:
        return [c for c in await self.get_all_with_stats() if c.task_count == 0]

    async def get_statistics(self) -> CategoryStatistics:
        categories = await self.get_all_with_stats()
        total = len(categories)
        with_tasks = sum(1 for c in categories if c.task_count > 0)
        total_tasks = sum(c.task_count for c in categories)

        most_used = None
        for c in categories:
            if c.task_count > (most_used.task_count if most_used else 0):
                most_used = c

        return CategoryStatistics(
            total=total,
            with_tasks=with_tasks,
            empty=total - with_tasks,
            average_tasks_per_category=round(total_tasks / total, 2) if total else 0,
            most_used_category=most_used,
        )

    async def create_default_categories(self) -> list[Category]:
        """
        Create the starter categories whose names are not taken yet

        Returns:
            The categories created by this call
        """
        created: list[Category] = []
        for defaults in DEFAULT_CATEGORIES:
            if await self.name_exists(defaults["name"]):
                continue
            try:
                created.append(await self.create_category(defaults))
            except ValidationException:
                logger.warning(f"Default category {defaults['name']} appeared concurrently")

        if created:
            logger.info(f"Created {len(created)} default categories")
        return created
