# tests/test_category_repository.py

import pytest

from taskly.api.v1.schemas.category import CategoryCreate, CategoryUpdate
from taskly.core.exceptions import ValidationException
from taskly.repositories.category import DEFAULT_CATEGORIES


async def test_duplicate_name_is_rejected_ignoring_case(categories, outbox) -> None:
    await categories.create_category(CategoryCreate(name="Work", color="#3B82F6"))

    with pytest.raises(ValidationException):
        await categories.create_category(CategoryCreate(name="work", color="#000000"))

    assert await categories.count() == 1
    assert len(await outbox("categories")) == 1
    assert await categories.name_exists("WORK") is True
    assert await categories.name_exists("Play") is False


async def test_rename_keeps_names_unique(categories) -> None:
    work = await categories.create_category({"name": "Work", "color": "#3B82F6"})
    await categories.create_category({"name": "Home", "color": "#10B981"})

    with pytest.raises(ValidationException):
        await categories.update_category(work.id, CategoryUpdate(name="home"))

    # Changing only the case of its own name is fine
    renamed = await categories.update_category(work.id, CategoryUpdate(name="WORK"))
    assert renamed.name == "WORK"
    assert await categories.name_exists("work", exclude_id=work.id) is False

    assert await categories.update_category("missing", {"color": "#fff"}) is None


async def test_blank_or_null_name_and_color_are_rejected(categories, outbox) -> None:
    with pytest.raises(ValidationException):
        await categories.create_category({"name": "  ", "color": "#3B82F6"})
    with pytest.raises(ValidationException):
        await categories.create_category({"name": "Errands"})

    errands = await categories.create_category(
        {"name": " Errands ", "color": "#6B7280", "icon": "cart"}
    )
    assert errands.name == "Errands"

    for data in ({"name": None}, {"color": None}, {"name": ""}):
        with pytest.raises(ValidationException):
            await categories.update_category(errands.id, data)

    cleared = await categories.update_category(errands.id, {"icon": None})
    assert cleared.icon is None
    assert len(await outbox("categories", errands.id)) == 2


async def test_delete_reassigns_tasks(categories, tasks, outbox) -> None:
    old = await categories.create_category({"name": "Old", "color": "#111111"})
    new = await categories.create_category({"name": "New", "color": "#222222"})
    first = await tasks.create({"title": "one", "category_id": old.id})
    second = await tasks.create({"title": "two", "category_id": old.id})

    assert await categories.delete_category(old.id, reassign_to_id=new.id) is True

    assert await categories.get_by_id(old.id) is None
    assert {t.id for t in await tasks.get_by_category(new.id)} == {first.id, second.id}
    assert any(r.operation == "delete" for r in await outbox("categories", old.id))
    for task in (first, second):
        assert [r.operation for r in await outbox("tasks", task.id)].count("update") == 1


async def test_delete_without_target_clears_category(categories, tasks) -> None:
    category = await categories.create_category({"name": "Temp", "color": "#333333"})
    task = await tasks.create({"title": "orphan soon", "category_id": category.id})

    assert await categories.delete(category.id) is True

    assert (await tasks.get_by_id(task.id)).category_id is None
    assert await categories.get_by_id(category.id) is None


async def test_delete_rejects_bad_targets(categories, tasks) -> None:
    category = await categories.create_category({"name": "Keep", "color": "#444444"})
    task = await tasks.create({"title": "stay", "category_id": category.id})

    with pytest.raises(ValidationException):
        await categories.delete_category(category.id, reassign_to_id=category.id)
    with pytest.raises(ValidationException):
        await categories.delete_category(category.id, reassign_to_id="missing")

    assert await categories.get_by_id(category.id) is not None
    assert (await tasks.get_by_id(task.id)).category_id == category.id
    assert await categories.delete_category("missing") is False


async def test_stats(categories, tasks) -> None:
    busy = await categories.create_category({"name": "Busy", "color": "#555555"})
    idle = await categories.create_category({"name": "Idle", "color": "#666666"})
    await tasks.create({"title": "a", "category_id": busy.id, "completed": True})
    await tasks.create({"title": "b", "category_id": busy.id})

    with_stats = await categories.get_with_stats(busy.id)
    assert with_stats.task_count == 2
    assert with_stats.completed_task_count == 1
    assert with_stats.completion_percentage == 50

    assert [c.id for c in await categories.get_empty_categories()] == [idle.id]
    assert [c.id for c in await categories.get_by_task_count()] == [busy.id, idle.id]
    assert [c.id for c in await categories.get_by_task_count(ascending=True)] == [idle.id, busy.id]

    stats = await categories.get_statistics()
    assert stats.total == 2
    assert stats.with_tasks == 1
    assert stats.empty == 1
    assert stats.average_tasks_per_category == 1
    assert stats.most_used_category.id == busy.id

    assert await categories.get_with_stats("missing") is None


async def test_create_default_categories_only_adds_missing(categories) -> None:
    await categories.create_category({"name": "work", "color": "#000000"})

    created = await categories.create_default_categories()
    assert {c.name for c in created} == {d["name"] for d in DEFAULT_CATEGORIES} - {"Work"}

    assert await categories.create_default_categories() == []
    assert await categories.count() == len(DEFAULT_CATEGORIES)
