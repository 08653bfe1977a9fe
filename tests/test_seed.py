# tests/test_seed.py

from taskly.services.seed import DEMO_TASKS, seed_default_categories, seed_demo_data


async def test_default_categories_are_created_once(categories) -> None:
    first = await seed_default_categories(categories)
    assert [c.name for c in first] == ["Work", "Personal", "Health", "Learning", "Shopping"]
    assert await seed_default_categories(categories) == []
    assert await categories.count() == 5


async def test_demo_tasks_skip_the_outbox(tasks, categories, outbox) -> None:
    seeded = await seed_demo_data(tasks, categories)

    assert len(seeded) == len(DEMO_TASKS)
    assert all(task.sync_status == "synced" for task in seeded)
    assert all(task.category_id is not None for task in seeded)
    assert await outbox("tasks") == []


async def test_demo_data_leaves_existing_tasks_alone(tasks, categories) -> None:
    await tasks.create({"title": "Mine"})

    assert await seed_demo_data(tasks, categories) == []
    assert await tasks.count() == 1
