# tests/test_task_repository.py

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from taskly.api.v1.schemas.task import TaskCreate, TaskFilter, TaskUpdate
from taskly.core.exceptions import PersistenceException, ValidationException
from taskly.models.mixins import SyncStatus


async def test_create_task_defaults_and_single_create_record(tasks, outbox) -> None:
    task = await tasks.create(TaskCreate(title="Buy milk"))

    assert task.id
    assert task.completed is False
    assert task.priority == "low"
    assert task.sync_status == SyncStatus.PENDING.value
    assert task.updated_at >= task.created_at

    records = await outbox()
    assert [(r.table_name, r.record_id, r.operation) for r in records] == [
        ("tasks", task.id, "create")
    ]
    assert records[0].data["title"] == "Buy milk"


async def test_update_and_delete_each_write_one_record(tasks, outbox) -> None:
    task = await tasks.create({"title": "Draft"})

    updated = await tasks.update(task.id, TaskUpdate(title="Final", priority="high"))
    assert updated is not None
    assert updated.title == "Final"
    assert updated.priority == "high"
    assert updated.updated_at >= updated.created_at

    assert await tasks.delete(task.id) is True
    assert await tasks.get_by_id(task.id) is None

    operations = [r.operation for r in await outbox("tasks", task.id)]
    assert sorted(operations) == ["create", "delete", "update"]
    delete_record = next(r for r in await outbox("tasks", task.id) if r.operation == "delete")
    assert delete_record.data["title"] == "Final"


async def test_missing_rows_return_none_or_false(tasks, outbox) -> None:
    assert await tasks.get_by_id("missing") is None
    assert await tasks.update("missing", {"title": "x"}) is None
    assert await tasks.delete("missing") is False
    assert await tasks.toggle_completion("missing") is None
    assert await outbox() == []


async def test_unknown_category_is_rejected_before_any_write(tasks, outbox) -> None:
    with pytest.raises(ValidationException):
        await tasks.create({"title": "Orphan", "category_id": "nope"})

    assert await tasks.get_all() == []
    assert await outbox() == []


async def test_unknown_field_is_rejected(tasks) -> None:
    with pytest.raises(ValidationException):
        await tasks.create({"title": "x", "colour": "red"})


@pytest.mark.parametrize("data", [{}, {"title": ""}, {"title": "   "}, {"title": None}])
async def test_create_rejects_missing_or_blank_title(tasks, outbox, data) -> None:
    with pytest.raises(ValidationException):
        await tasks.create(data)

    assert await tasks.count() == 0
    assert await outbox() == []


async def test_update_rejects_blank_title_and_null_columns(tasks, outbox) -> None:
    task = await tasks.create({"title": "  Keep me  "})
    assert task.title == "Keep me"

    for data in ({"title": "  "}, {"title": None}, {"completed": None}, {"priority": None}):
        with pytest.raises(ValidationException):
            await tasks.update(task.id, data)

    assert (await tasks.get_by_id(task.id)).title == "Keep me"
    assert [r.operation for r in await outbox("tasks", task.id)] == ["create"]

    # Nullable columns may still be cleared
    cleared = await tasks.update(task.id, {"description": None, "due_date": None})
    assert cleared.description is None


async def test_blank_subtask_title_is_rejected(tasks, subtasks, outbox) -> None:
    task = await tasks.create({"title": "Parent"})

    with pytest.raises(ValidationException):
        await subtasks.create_subtask({"task_id": task.id, "title": " "})

    child = await subtasks.create_subtask({"task_id": task.id, "title": "Child"})
    with pytest.raises(ValidationException):
        await subtasks.update(child.id, {"title": ""})

    assert [s.title for s in await subtasks.get_by_task_id(task.id)] == ["Child"]
    assert [r.operation for r in await outbox("subtasks", child.id)] == ["create"]


async def test_protected_fields_are_ignored(tasks) -> None:
    task = await tasks.create({"title": "x", "id": "chosen", "sync_status": "synced"})
    assert task.id != "chosen"
    assert task.sync_status == "pending"


async def test_toggle_completion_cascades_to_subtasks(tasks, subtasks, outbox) -> None:
    task = await tasks.create({"title": "Pack for trip"})
    created = [
        await subtasks.create_subtask({"task_id": task.id, "title": title})
        for title in ("Passport", "Charger", "Snacks")
    ]

    toggled = await tasks.toggle_completion(task.id, True)
    assert toggled.completed is True

    children = await subtasks.get_by_task_id(task.id)
    assert [s.completed for s in children] == [True, True, True]

    for subtask in created:
        operations = [r.operation for r in await outbox("subtasks", subtask.id)]
        assert sorted(operations) == ["create", "update"]


async def test_toggle_twice_restores_task_but_not_subtasks(tasks, subtasks) -> None:
    task = await tasks.create({"title": "Write report", "actual_time": 30})
    await subtasks.create_subtask({"task_id": task.id, "title": "Outline"})
    await subtasks.create_subtask({"task_id": task.id, "title": "Draft"})

    first = await tasks.toggle_completion(task.id)
    assert first.completed is True

    second = await tasks.toggle_completion(task.id)
    assert second.completed is False
    assert second.actual_time is None

    children = await subtasks.get_by_task_id(task.id)
    assert all(s.completed for s in children)


async def test_update_to_completed_cascades_to_subtasks(tasks, subtasks, outbox) -> None:
    task = await tasks.create({"title": "Move house"})
    boxes = await subtasks.create_subtask({"task_id": task.id, "title": "Boxes"})
    keys = await subtasks.create_subtask({"task_id": task.id, "title": "Keys"})
    await subtasks.toggle_completion(keys.id)

    updated = await tasks.update(task.id, {"completed": True})
    assert updated.completed is True
    assert all(s.completed for s in await subtasks.get_by_task_id(task.id))

    assert sorted(r.operation for r in await outbox("subtasks", boxes.id)) == ["create", "update"]
    # Already complete, nothing to cascade
    assert sorted(r.operation for r in await outbox("subtasks", keys.id)) == ["create", "update"]

    # Updating an already completed task does not touch subtasks again
    await tasks.update(task.id, {"completed": True, "title": "Move flat"})
    assert len(await outbox("subtasks", boxes.id)) == 2


async def test_delete_task_removes_children_with_outbox_records(
    tasks, subtasks, time_sessions, outbox
) -> None:
    task = await tasks.create({"title": "Parent"})
    subtask = await subtasks.create_subtask({"task_id": task.id, "title": "Child"})
    session = await time_sessions.start_session(task.id)

    assert await tasks.delete(task.id) is True

    assert await subtasks.get_by_id(subtask.id) is None
    assert await time_sessions.get_by_id(session.id) is None

    assert any(r.operation == "delete" for r in await outbox("subtasks", subtask.id))
    assert any(r.operation == "delete" for r in await outbox("time_sessions", session.id))
    assert any(r.operation == "delete" for r in await outbox("tasks", task.id))


async def test_get_filtered(tasks, categories) -> None:
    work = await categories.create_category({"name": "Work", "color": "#3B82F6"})
    await tasks.create({"title": "Quarterly REPORT", "category_id": work.id, "priority": "high"})
    await tasks.create({"title": "Groceries", "description": "milk and bread", "tags": ["home"]})
    done = await tasks.create({"title": "Old report", "completed": True, "tags": ["archive"]})

    found = await tasks.get_filtered(TaskFilter(search="report"))
    assert {t.title for t in found} == {"Quarterly REPORT", "Old report"}

    assert [t.title for t in await tasks.get_filtered(TaskFilter(search="MILK"))] == ["Groceries"]
    assert [t.title for t in await tasks.get_filtered(TaskFilter(priority="high"))] == [
        "Quarterly REPORT"
    ]
    assert [t.id for t in await tasks.get_filtered(TaskFilter(completed=True))] == [done.id]
    assert [t.title for t in await tasks.get_by_category(work.id)] == ["Quarterly REPORT"]
    assert [t.title for t in await tasks.get_by_tag("home")] == ["Groceries"]

    # Search terms are matched literally
    assert await tasks.get_filtered(TaskFilter(search="%")) == []


async def test_get_all_is_newest_first(tasks) -> None:
    first = await tasks.create({"title": "first"})
    second = await tasks.create({"title": "second"})
    assert [t.id for t in await tasks.get_all()] == [second.id, first.id]


async def test_due_date_queries_and_statistics(tasks) -> None:
    now = datetime(2030, 1, 15, 12, 0, tzinfo=timezone.utc)
    await tasks.create({"title": "Late", "due_date": now - timedelta(days=1), "priority": "high"})
    await tasks.create({"title": "Tonight", "due_date": now + timedelta(hours=6), "priority": "medium"})
    await tasks.create(
        {"title": "Done long ago", "due_date": now - timedelta(days=5), "completed": True}
    )
    await tasks.create({"title": "Whenever"})

    assert [t.title for t in await tasks.get_overdue(now)] == ["Late"]
    assert [t.title for t in await tasks.get_due_today(now)] == ["Tonight"]

    in_range = await tasks.get_filtered(
        TaskFilter(due_from=now - timedelta(days=2), due_to=now + timedelta(days=1))
    )
    assert {t.title for t in in_range} == {"Late", "Tonight"}

    stats = await tasks.get_statistics(now)
    assert stats.total == 4
    assert stats.completed == 1
    assert stats.pending == 3
    assert stats.overdue == 1
    assert stats.due_today == 1
    assert stats.by_priority.high == 1
    assert stats.by_priority.medium == 1
    assert stats.by_priority.low == 2


async def test_get_with_details(tasks, subtasks, time_sessions) -> None:
    task = await tasks.create({"title": "Refactor"})
    first = await subtasks.create_subtask({"task_id": task.id, "title": "Split module"})
    await subtasks.create_subtask({"task_id": task.id, "title": "Add tests"})
    await subtasks.toggle_completion(first.id)

    start = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
    await time_sessions.create(
        {"task_id": task.id, "start_time": start, "end_time": start + timedelta(seconds=125)}
    )
    await time_sessions.create(
        {"task_id": task.id, "start_time": start, "end_time": start + timedelta(minutes=10)}
    )

    detail = await tasks.get_with_details(task.id)
    assert detail is not None
    assert [s.title for s in detail.subtasks] == ["Split module", "Add tests"]
    assert len(detail.time_sessions) == 2
    assert detail.total_time_spent == 12
    assert detail.completion_percentage == 50

    await tasks.toggle_completion(task.id, True)
    assert (await tasks.get_with_details(task.id)).completion_percentage == 100

    assert await tasks.get_with_details("missing") is None


async def test_bulk_update_category_and_tags(tasks, categories, outbox) -> None:
    home = await categories.create_category({"name": "Home", "color": "#10B981"})
    a = await tasks.create({"title": "a"})
    b = await tasks.create({"title": "b"})

    assert await tasks.bulk_update_category([a.id, b.id, "missing"], home.id) == 2
    assert {t.id for t in await tasks.get_by_category(home.id)} == {a.id, b.id}

    with pytest.raises(ValidationException):
        await tasks.bulk_update_category([a.id], "missing")

    tagged = await tasks.update_tags(a.id, ["x", "y"])
    assert tagged.tags == ["x", "y"]
    assert len([r for r in await outbox("tasks", a.id) if r.operation == "update"]) == 2


async def test_sync_status_helpers_bypass_the_outbox(tasks, outbox) -> None:
    task = await tasks.create({"title": "x"})
    before = len(await outbox())

    assert [t.id for t in await tasks.get_pending_sync()] == [task.id]

    assert await tasks.update_sync_status(task.id, SyncStatus.CONFLICT) is True
    assert [t.id for t in await tasks.get_conflicts()] == [task.id]
    assert await tasks.update_sync_status("missing", SyncStatus.SYNCED) is False

    assert len(await outbox()) == before


async def test_batch_create_is_synced_without_outbox(tasks, outbox) -> None:
    created = await tasks.batch_create([{"title": "one"}, {"title": "two"}])

    assert len(created) == 2
    assert all(t.sync_status == "synced" and t.last_sync_at is not None for t in created)
    assert await tasks.count() == 2
    assert await outbox() == []


async def test_store_failures(engine, subtasks, tasks) -> None:
    task = await tasks.create({"title": "x"})
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE subtasks"))

    # get_all is fail-soft, everything else surfaces the failure
    assert await subtasks.get_all() == []
    with pytest.raises(PersistenceException):
        await subtasks.get_by_id("anything")
    with pytest.raises(PersistenceException):
        await subtasks.create_subtask({"task_id": task.id, "title": "y"})
