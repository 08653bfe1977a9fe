# tests/test_time_session_repository.py

from datetime import datetime, timedelta, timezone

import pytest

from taskly.api.v1.schemas.time_session import TimeStats
from taskly.core.exceptions import DomainException, PersistenceException, ValidationException
from taskly.repositories.time_session import format_duration

START = datetime(2030, 3, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture()
async def task(tasks):
    return await tasks.create({"title": "Deep work"})


async def test_only_one_active_session_per_task(time_sessions, task) -> None:
    session = await time_sessions.start_session(task.id, notes="morning")
    assert session.end_time is None
    assert session.duration is None
    assert (await time_sessions.get_active_session(task.id)).id == session.id

    with pytest.raises(DomainException):
        await time_sessions.start_session(task.id)

    ended = await time_sessions.end_session(session.id)
    assert ended.end_time is not None
    assert ended.duration >= 0
    assert await time_sessions.get_active_session(task.id) is None

    again = await time_sessions.start_session(task.id)
    assert again.id != session.id


async def test_active_session_index_backs_the_rule(time_sessions, task) -> None:
    await time_sessions.start_session(task.id)
    with pytest.raises(PersistenceException):
        await time_sessions.create({"task_id": task.id, "start_time": START})


async def test_start_requires_existing_task(time_sessions, outbox) -> None:
    with pytest.raises(ValidationException):
        await time_sessions.start_session("missing")
    assert await outbox() == []


async def test_end_session_edge_cases(time_sessions, task) -> None:
    assert await time_sessions.end_session("missing") is None

    session = await time_sessions.start_session(task.id)
    ended = await time_sessions.end_session(session.id, notes="done")
    assert ended.notes == "done"

    with pytest.raises(DomainException):
        await time_sessions.end_session(session.id)


async def test_duration_is_always_derived(time_sessions, task) -> None:
    active = await time_sessions.create({"task_id": task.id, "start_time": START, "duration": 999})
    assert active.duration is None

    finished = await time_sessions.update(
        active.id, {"end_time": START + timedelta(seconds=90), "duration": 5}
    )
    assert finished.duration == 90


async def test_naive_times_are_treated_as_utc(time_sessions, task) -> None:
    naive_start = START.replace(tzinfo=None)

    closed = await time_sessions.create(
        {
            "task_id": task.id,
            "start_time": naive_start,
            "end_time": naive_start + timedelta(seconds=90),
        }
    )
    assert closed.duration == 90
    assert closed.start_time == START

    active = await time_sessions.create(
        {"task_id": task.id, "start_time": START + timedelta(hours=1)}
    )
    finished = await time_sessions.update(
        active.id, {"end_time": naive_start + timedelta(hours=1, minutes=2)}
    )
    assert finished.duration == 120
    assert finished.end_time.tzinfo is not None


async def test_time_stats_use_completed_sessions(time_sessions, task) -> None:
    for seconds in (60, 120, 3723):
        await time_sessions.create(
            {"task_id": task.id, "start_time": START, "end_time": START + timedelta(seconds=seconds)}
        )
    await time_sessions.start_session(task.id)

    stats = await time_sessions.get_task_time_stats(task.id)
    assert stats.total_sessions == 3
    assert stats.total_duration == 3903
    assert stats.average_session_duration == 1301
    assert stats.longest_session == 3723
    assert stats.shortest_session == 60
    assert stats.total_duration_formatted == "1h 5m 3s"

    assert (await time_sessions.get_overall_time_stats()).total_sessions == 3


async def test_empty_stats(time_sessions, task) -> None:
    stats = await time_sessions.get_task_time_stats(task.id)
    assert stats.total_sessions == 0
    assert stats.total_duration_formatted == "0s"
    assert TimeStats().total_duration_formatted == format_duration(0)


async def test_queries(time_sessions, tasks, task) -> None:
    other = await tasks.create({"title": "Other"})
    old = await time_sessions.create(
        {"task_id": task.id, "start_time": START, "end_time": START + timedelta(minutes=5)}
    )
    running = await time_sessions.start_session(other.id)

    assert [s.id for s in await time_sessions.get_all_active_sessions()] == [running.id]
    assert [s.id for s in await time_sessions.get_completed_sessions()] == [old.id]
    assert [s.id for s in await time_sessions.get_by_task_id(task.id)] == [old.id]
    assert [
        s.id
        for s in await time_sessions.get_sessions_in_range(START, START + timedelta(hours=1))
    ] == [old.id]
    assert [s.id for s in await time_sessions.get_today_sessions(START + timedelta(hours=3))] == [
        old.id
    ]


async def test_stop_all_active_sessions(time_sessions, tasks, task) -> None:
    other = await tasks.create({"title": "Other"})
    await time_sessions.start_session(task.id)
    await time_sessions.start_session(other.id)

    assert await time_sessions.stop_all_active_sessions() == 2
    assert await time_sessions.get_all_active_sessions() == []
    assert await time_sessions.stop_all_active_sessions() == 0


async def test_current_session_duration(time_sessions, task) -> None:
    active = await time_sessions.create({"task_id": task.id, "start_time": START})
    assert time_sessions.current_session_duration(active, START + timedelta(seconds=42.9)) == 42

    ended = await time_sessions.update(active.id, {"end_time": START + timedelta(seconds=10)})
    assert time_sessions.current_session_duration(ended, START + timedelta(days=1)) == 10


async def test_delete_by_task_id(time_sessions, task) -> None:
    await time_sessions.start_session(task.id)
    assert await time_sessions.delete_by_task_id(task.id) == 1
    assert await time_sessions.get_by_task_id(task.id) == []


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0s"), (45, "45s"), (303, "5m 3s"), (3723, "1h 2m 3s"), (-5, "0s")],
)
def test_format_duration(seconds: int, expected: str) -> None:
    assert format_duration(seconds) == expected
