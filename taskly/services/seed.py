"""
Seed service
Starter categories and demo tasks for a fresh store
"""
import logging

from taskly.models.category import Category
from taskly.models.task import Task, TaskPriority
from taskly.repositories.category import CategoryRepository
from taskly.repositories.task import TaskRepository

logger = logging.getLogger(__name__)

DEMO_TASKS = [
    {
        "title": "Complete project proposal",
        "description": "Write and submit the Q4 project proposal",
        "priority": TaskPriority.HIGH,
        "category": "Work",
    },
    {
        "title": "Buy groceries",
        "description": "Milk, bread, eggs, and vegetables",
        "priority": TaskPriority.LOW,
        "category": "Personal",
    },
    {
        "title": "Learn FastAPI",
        "description": "Work through the FastAPI tutorial",
        "priority": TaskPriority.LOW,
        "category": "Learning",
    },
]


async def seed_default_categories(category_repository: CategoryRepository) -> list[Category]:
    return await category_repository.create_default_categories()


async def seed_demo_data(
    task_repository: TaskRepository,
    category_repository: CategoryRepository,
) -> list[Task]:
    """
    Insert a few demo tasks into an empty store

    Demo rows are created already synced, so they never enter the outbox.
    Does nothing when any task exists.

    Returns:
        The tasks created
    """
    if await task_repository.count() > 0:
        logger.info("Store already has tasks, skipping demo data")
        return []

    await category_repository.create_default_categories()
    categories = {c.name: c.id for c in await category_repository.get_all()}

    rows = [
        {
            "title": demo["title"],
            "description": demo["description"],
            "priority": demo["priority"],
            "category_id": categories.get(demo["category"]),
        }
        for demo in DEMO_TASKS
    ]
    tasks = await task_repository.batch_create(rows)
    logger.info(f"Seeded {len(tasks)} demo tasks")
    return tasks
