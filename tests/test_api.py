# tests/test_api.py

import json

import httpx
import pytest
from fastapi.routing import APIRoute

from taskly.api.v1.api import api_router
from taskly.core.config import settings
from taskly.main import create_app
from taskly.services.sync import local_push

API = settings.API_V1_PREFIX


@pytest.fixture()
async def client(engine):
    application = create_app(engine=engine, push=local_push)
    transport = httpx.ASGITransport(app=application)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


async def _task(client, **fields) -> dict:
    response = await client.post(f"{API}/tasks", json={"title": "Write report", **fields})
    assert response.status_code == 201
    return response.json()


async def test_health_and_readiness(client) -> None:
    assert (await client.get(f"{API}/health")).json()["status"] == "healthy"
    ready = await client.get(f"{API}/health/ready")
    assert ready.status_code == 200
    assert ready.json()["status"] == "ready"
    assert ready.json()["sync_state"] == "idle"
    assert ready.json()["pending_sync_count"] == 0


async def test_task_crud(client) -> None:
    created = await _task(client, priority="high", tags=["q3"])
    assert created["sync_status"] == "pending"
    assert created["priority"] == "high"

    fetched = await client.get(f"{API}/tasks/{created['id']}")
    assert fetched.json()["title"] == "Write report"

    updated = await client.put(f"{API}/tasks/{created['id']}", json={"title": "Write summary"})
    assert updated.status_code == 200
    assert updated.json()["title"] == "Write summary"
    assert updated.json()["priority"] == "high"

    toggled = await client.post(f"{API}/tasks/{created['id']}/toggle")
    assert toggled.json()["completed"] is True

    listed = await client.get(f"{API}/tasks", params={"completed": "true"})
    assert [t["id"] for t in listed.json()] == [created["id"]]

    assert (await client.delete(f"{API}/tasks/{created['id']}")).status_code == 204
    assert (await client.get(f"{API}/tasks/{created['id']}")).status_code == 404
    assert (await client.delete(f"{API}/tasks/{created['id']}")).status_code == 404


async def test_task_validation(client) -> None:
    assert (await client.post(f"{API}/tasks", json={"title": "   "})).status_code == 422
    assert (await client.post(f"{API}/tasks", json={"title": "x", "priority": "asap"})).status_code == 422
    missing = await client.post(f"{API}/tasks", json={"title": "x", "category_id": "nope"})
    assert missing.status_code == 400
    assert (await client.put(f"{API}/tasks/nope", json={"title": "x"})).status_code == 404


async def test_explicit_null_on_required_fields_is_rejected(client) -> None:
    task = await _task(client)
    subtask = (
        await client.post(f"{API}/subtasks", json={"task_id": task["id"], "title": "a"})
    ).json()
    category = (
        await client.post(f"{API}/categories", json={"name": "Errands", "color": "#6B7280"})
    ).json()

    for body in ({"title": None}, {"completed": None}, {"priority": None}, {"title": " "}):
        assert (await client.put(f"{API}/tasks/{task['id']}", json=body)).status_code == 422
    for body in ({"title": None}, {"completed": None}):
        assert (await client.put(f"{API}/subtasks/{subtask['id']}", json=body)).status_code == 422
    for body in ({"name": None}, {"color": None}):
        response = await client.put(f"{API}/categories/{category['id']}", json=body)
        assert response.status_code == 422

    # Nullable fields can still be cleared
    cleared = await client.put(f"{API}/tasks/{task['id']}", json={"due_date": None})
    assert cleared.status_code == 200
    assert (await client.get(f"{API}/tasks/{task['id']}")).json()["title"] == "Write report"


async def test_categories(client) -> None:
    work = await client.post(f"{API}/categories", json={"name": "Work", "color": "#3B82F6"})
    assert work.status_code == 201
    duplicate = await client.post(f"{API}/categories", json={"name": "work", "color": "#000000"})
    assert duplicate.status_code == 409

    home = (await client.post(f"{API}/categories", json={"name": "Home", "color": "#10B981"})).json()
    task = await _task(client, category_id=work.json()["id"])

    with_stats = await client.get(f"{API}/categories/{work.json()['id']}")
    assert with_stats.json()["task_count"] == 1

    bad_target = await client.delete(
        f"{API}/categories/{work.json()['id']}", params={"reassign_to_id": work.json()["id"]}
    )
    assert bad_target.status_code == 400

    deleted = await client.delete(
        f"{API}/categories/{work.json()['id']}", params={"reassign_to_id": home["id"]}
    )
    assert deleted.status_code == 204
    assert (await client.get(f"{API}/tasks/{task['id']}")).json()["category_id"] == home["id"]
    assert (await client.get(f"{API}/categories/{work.json()['id']}")).status_code == 404


async def test_time_sessions(client) -> None:
    task = await _task(client)

    started = await client.post(f"{API}/tasks/{task['id']}/sessions/start", json={"notes": "focus"})
    assert started.status_code == 201
    session = started.json()
    assert session["end_time"] is None

    again = await client.post(f"{API}/tasks/{task['id']}/sessions/start")
    assert again.status_code == 409
    assert (await client.post(f"{API}/tasks/nope/sessions/start")).status_code == 400

    active = await client.get(f"{API}/tasks/{task['id']}/sessions/active")
    assert active.json()["id"] == session["id"]

    ended = await client.post(f"{API}/sessions/{session['id']}/end")
    assert ended.status_code == 200
    assert ended.json()["duration"] >= 0
    assert (await client.post(f"{API}/sessions/{session['id']}/end")).status_code == 409
    assert (await client.post(f"{API}/sessions/nope/end")).status_code == 404


async def test_subtask_moves(client) -> None:
    task = await _task(client)
    first = (await client.post(f"{API}/subtasks", json={"task_id": task["id"], "title": "a"})).json()
    second = (await client.post(f"{API}/subtasks", json={"task_id": task["id"], "title": "b"})).json()

    assert (await client.post(f"{API}/subtasks/{first['id']}/move-up")).status_code == 409
    assert (await client.post(f"{API}/subtasks/{second['id']}/move-down")).status_code == 409
    assert (await client.post(f"{API}/subtasks/nope/move-up")).status_code == 404

    moved = await client.post(f"{API}/subtasks/{second['id']}/move-up")
    assert moved.status_code == 200
    listed = await client.get(f"{API}/tasks/{task['id']}/subtasks")
    assert [s["title"] for s in listed.json()] == ["b", "a"]


async def test_sync_endpoints(client) -> None:
    await _task(client)

    status = await client.get(f"{API}/sync/status")
    assert status.json()["state"] == "idle"
    assert status.json()["in_progress"] is False
    assert status.json()["statistics"]["pending_count"] == 1

    result = await client.post(f"{API}/sync")
    assert result.json() == {"success": True, "synced_count": 1, "failed_count": 0, "errors": []}
    assert (await client.get(f"{API}/sync/pending")).json() == []


async def test_export_and_import(client) -> None:
    await _task(client, description="with, comma")

    exported = await client.get(f"{API}/export", params={"format": "csv"})
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert "taskly-export-" in exported.headers["content-disposition"]
    assert '"with, comma"' in exported.text

    as_json = await client.get(f"{API}/export")
    assert json.loads(as_json.text)["taskCount"] == 1

    imported = await client.post(
        f"{API}/import",
        json={"format": "json", "data": json.dumps([{"title": "From file", "category": "Errands"}])},
    )
    assert imported.status_code == 201
    assert imported.json() == {"imported": 1, "skipped": 0}

    rejected = await client.post(f"{API}/import", json={"format": "json", "data": "{"})
    assert rejected.status_code == 400


async def test_categorize(client) -> None:
    await client.post(f"{API}/categories", json={"name": "Shopping", "color": "#EC4899"})

    response = await client.post(f"{API}/categorize", json={"title": "Buy groceries"})

    assert response.status_code == 200
    assert response.json()["category"] == "Shopping"


def test_every_route_handler_is_documented() -> None:
    undocumented = [
        route.path
        for route in api_router.routes
        if isinstance(route, APIRoute) and not (route.endpoint.__doc__ or "").strip()
    ]
    assert undocumented == []
