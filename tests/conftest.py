# tests/conftest.py

from pathlib import Path

import pytest
from sqlalchemy import select

from taskly.core.database import build_engine, build_session_maker, init_db
from taskly.models.sync_record import SyncRecord
from taskly.services.container import build_container


@pytest.fixture()
async def engine(tmp_path: Path):
    """Fresh SQLite file per test, schema created up front"""
    store = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskly.db'}")
    await init_db(store)
    yield store
    await store.dispose()


@pytest.fixture()
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture()
def container(session_maker):
    return build_container(session_maker)


@pytest.fixture()
def tasks(container):
    return container.tasks


@pytest.fixture()
def categories(container):
    return container.categories


@pytest.fixture()
def subtasks(container):
    return container.subtasks


@pytest.fixture()
def time_sessions(container):
    return container.time_sessions


@pytest.fixture()
def sync_service(container):
    return container.sync


@pytest.fixture()
def outbox(session_maker):
    """Callable returning the current sync records, oldest first"""

    async def fetch(table_name=None, record_id=None):
        query = select(SyncRecord).order_by(SyncRecord.timestamp.asc())
        if table_name is not None:
            query = query.where(SyncRecord.table_name == table_name)
        if record_id is not None:
            query = query.where(SyncRecord.record_id == record_id)
        async with session_maker() as session:
            return list((await session.execute(query)).scalars().all())

    return fetch
