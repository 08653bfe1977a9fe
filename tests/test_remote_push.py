# tests/test_remote_push.py

import httpx

from taskly.services.remote import RemotePush
from taskly.services.sync import SyncService


async def test_remote_push_posts_each_record(session_maker, container, tasks, outbox) -> None:
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(200, json={"ok": True})

    push = RemotePush(
        "https://sync.example/api/", token="secret", transport=httpx.MockTransport(handler)
    )
    service = SyncService(session_maker, container.repositories, push=push)
    task = await tasks.create({"title": "Buy milk"})

    result = await service.perform_sync()

    assert result.success is True
    (request,) = received
    assert request.method == "POST"
    assert str(request.url) == "https://sync.example/api/tasks"
    assert request.headers["authorization"] == "Bearer secret"
    body = request.read().decode()
    assert task.id in body
    assert '"operation":"create"' in body.replace(" ", "")
    assert await outbox() == []


async def test_remote_errors_become_retries(session_maker, container, tasks, outbox) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    push = RemotePush("https://sync.example", transport=httpx.MockTransport(handler))
    service = SyncService(session_maker, container.repositories, push=push)
    task = await tasks.create({"title": "Buy milk"})

    result = await service.perform_sync()

    assert result.success is False
    assert result.errors == [f"Failed to sync tasks {task.id}: Sync endpoint answered 502"]
    (record,) = await outbox()
    assert record.retry_count == 1
    assert (await tasks.get_by_id(task.id)).sync_status == "pending"
