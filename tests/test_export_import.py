# tests/test_export_import.py

import json

import pytest

from taskly.api.v1.schemas.export_import import ExportedTask, ExportFormat
from taskly.core.exceptions import ValidationException
from taskly.services.export_import import (
    CSV_HEADERS,
    export_from,
    export_tasks,
    import_tasks,
    import_tasks_into,
)


def _row(**overrides) -> ExportedTask:
    values = {
        "title": "Call mom",
        "created_at": "2030-01-01T00:00:00+00:00",
        "updated_at": "2030-01-01T00:00:00+00:00",
    }
    values.update(overrides)
    return ExportedTask(**values)


def test_json_export_is_wrapped() -> None:
    body = json.loads(export_tasks([_row(category="Personal", priority="low")], ExportFormat.JSON))

    assert body["version"] == "1.0"
    assert body["taskCount"] == 1
    assert "exportDate" in body
    assert body["tasks"][0]["title"] == "Call mom"
    assert body["tasks"][0]["category"] == "Personal"
    assert body["tasks"][0]["createdAt"] == "2030-01-01T00:00:00+00:00"


def test_csv_export_quotes_commas_and_quotes() -> None:
    text = export_tasks(
        [_row(title="Call mom, then dad", description='Say "hi"', completed=True)],
        ExportFormat.CSV,
    )
    header, line = text.strip().split("\n")

    assert header == ",".join(CSV_HEADERS)
    assert line.startswith('"Call mom, then dad","Say ""hi""",true,,,')


def test_csv_export_of_nothing_is_just_the_header() -> None:
    assert export_tasks([], ExportFormat.CSV) == ",".join(CSV_HEADERS) + "\n"


def test_json_import_accepts_both_shapes() -> None:
    wrapped = json.dumps({"version": "1.0", "tasks": [{"title": "a", "priority": "HIGH"}]})
    bare = json.dumps([{"title": "b", "priority": "someday"}])

    assert [(t.title, t.priority) for t in import_tasks(wrapped, ExportFormat.JSON)] == [
        ("a", "high")
    ]
    assert [(t.title, t.priority) for t in import_tasks(bare, ExportFormat.JSON)] == [("b", "low")]


def test_json_import_reads_completed_strings_like_csv() -> None:
    payload = json.dumps(
        [
            {"title": "a", "completed": "false"},
            {"title": "b", "completed": "TRUE"},
            {"title": "c", "completed": True},
            {"title": "d", "completed": 0},
            {"title": "e"},
        ]
    )

    rows = import_tasks(payload, ExportFormat.JSON)

    assert [(r.title, r.completed) for r in rows] == [
        ("a", False),
        ("b", True),
        ("c", True),
        ("d", False),
        ("e", False),
    ]


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        json.dumps({"items": []}),
        json.dumps([{"description": "no title"}]),
        json.dumps([{"title": "   "}]),
        json.dumps(["just a string"]),
    ],
)
def test_json_import_rejects_bad_payloads(payload: str) -> None:
    with pytest.raises(ValidationException):
        import_tasks(payload, ExportFormat.JSON)


def test_csv_import_skips_bad_rows() -> None:
    data = "\n".join(
        [
            "Title,Description,Completed,Category,Priority",
            '"Pay rent, June",,true,Finance,high',
            ",missing title,false,,",
            "too,few",
            "Walk dog,,FALSE,,urgent",
        ]
    )

    rows = import_tasks(data, ExportFormat.CSV)

    assert [(r.title, r.completed, r.category, r.priority) for r in rows] == [
        ("Pay rent, June", True, "Finance", "high"),
        ("Walk dog", False, None, "low"),
    ]


def test_csv_import_requires_title_header_and_a_row() -> None:
    with pytest.raises(ValidationException):
        import_tasks("title", ExportFormat.CSV)
    with pytest.raises(ValidationException):
        import_tasks("name,priority\nx,low", ExportFormat.CSV)


async def test_import_into_store_resolves_categories(tasks, categories, outbox) -> None:
    work = await categories.create_category({"name": "Work", "color": "#3B82F6"})
    rows = [
        _row(title="Standup", category="work"),
        _row(title="Buy plants", category="Garden", completed=True),
        _row(title="Loose end"),
    ]

    response = await import_tasks_into(tasks, categories, rows)

    assert response.imported == 3
    by_title = {t.title: t for t in await tasks.get_all()}
    assert by_title["Standup"].category_id == work.id
    garden = await categories.get_by_name("garden")
    assert garden is not None
    assert by_title["Buy plants"].category_id == garden.id
    assert by_title["Buy plants"].completed is True
    assert by_title["Loose end"].category_id is None
    assert len(await outbox("tasks")) == 3


async def test_export_then_import_through_store(tasks, categories) -> None:
    home = await categories.create_category({"name": "Home", "color": "#10B981"})
    await tasks.create({"title": "Fix sink", "category_id": home.id, "priority": "medium"})

    exported = await export_from(tasks, categories, ExportFormat.CSV)
    rows = import_tasks(exported, ExportFormat.CSV)

    assert [(r.title, r.category, r.priority) for r in rows] == [("Fix sink", "Home", "medium")]
