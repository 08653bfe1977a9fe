"""
Export/import service
Serializes tasks to JSON or CSV and reads them back
"""
import csv
import io
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from taskly.api.v1.schemas.export_import import ExportedTask, ExportFormat, ImportResponse
from taskly.core.exceptions import ValidationException
from taskly.models.mixins import utcnow
from taskly.models.task import Task, TaskPriority
from taskly.repositories.category import CategoryRepository
from taskly.repositories.task import TaskRepository

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
IMPORTED_CATEGORY_COLOR = "#6B7280"
CSV_HEADERS = ["title", "description", "completed", "category", "priority", "createdAt", "updatedAt"]

# Header spellings accepted on import, mapped to ExportedTask field names
_CSV_FIELD_ALIASES = {
    "title": "title",
    "description": "description",
    "completed": "completed",
    "category": "category",
    "priority": "priority",
    "createdat": "created_at",
    "created_at": "created_at",
    "updatedat": "updated_at",
    "updated_at": "updated_at",
}


def to_exported(tasks: Iterable[Task], category_names: Mapping[str, str]) -> list[ExportedTask]:
    """
    Flatten tasks for export

    Args:
        tasks: Tasks to export
        category_names: Category name by category id
    """
    return [
        ExportedTask(
            title=task.title,
            description=task.description,
            completed=task.completed,
            category=category_names.get(task.category_id) if task.category_id else None,
            priority=task.priority,
            created_at=task.created_at.isoformat(),
            updated_at=task.updated_at.isoformat(),
        )
        for task in tasks
    ]


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def export_tasks(tasks: list[ExportedTask], export_format: ExportFormat) -> str:
    """
    Render exported tasks as JSON or CSV

    JSON is wrapped with version, exportDate and taskCount. CSV quotes
    cells containing commas, quotes or newlines and doubles embedded quotes.
    """
    export_format = ExportFormat(export_format)

    if export_format == ExportFormat.JSON:
        payload = {
            "version": EXPORT_VERSION,
            "exportDate": utcnow().isoformat(),
            "taskCount": len(tasks),
            "tasks": [task.model_dump(by_alias=True) for task in tasks],
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for task in tasks:
        row = task.model_dump(by_alias=True)
        writer.writerow([_csv_cell(row.get(header)) for header in CSV_HEADERS])
    return buffer.getvalue()


def _normalize_priority(value: Optional[str]) -> str:
    try:
        return TaskPriority((value or "").strip().lower()).value
    except ValueError:
        return TaskPriority.LOW.value


def _parse_completed(value: Any) -> bool:
    # Text "true" (any case) is the only true string; "false", "0" and "" are false
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _import_json(data: str) -> list[ExportedTask]:
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        raise ValidationException("Invalid JSON format. Please check your data.") from e

    if isinstance(parsed, list):
        items = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("tasks"), list):
        items = parsed["tasks"]
    else:
        raise ValidationException(
            "Invalid JSON structure. Expected array of tasks or object with tasks property."
        )

    tasks = []
    now = utcnow().isoformat()
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationException(f"Task {index}: Invalid task object")
        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationException(f"Task {index}: Missing or invalid title")

        try:
            tasks.append(
                ExportedTask(
                    title=title.strip(),
                    description=item.get("description") or None,
                    completed=_parse_completed(item.get("completed")),
                    category=item.get("category") or None,
                    priority=_normalize_priority(item.get("priority")),
                    created_at=item.get("createdAt") or item.get("created_at") or now,
                    updated_at=item.get("updatedAt") or item.get("updated_at") or now,
                )
            )
        except ValidationError as e:
            raise ValidationException(f"Task {index}: {e}") from e
    return tasks


def _import_csv(data: str) -> list[ExportedTask]:
    reader = csv.reader(io.StringIO(data.strip()))
    rows = list(reader)
    if len(rows) < 2:
        raise ValidationException("CSV must contain at least a header row and one data row.")

    headers = [h.strip().lower() for h in rows[0]]
    if "title" not in headers:
        raise ValidationException("Missing required CSV headers: title")

    tasks = []
    now = utcnow().isoformat()
    for line_number, values in enumerate(rows[1:], start=2):
        if len(values) != len(headers):
            logger.warning(f"Row {line_number}: Column count mismatch, skipping")
            continue

        row: dict[str, str] = {}
        for header, value in zip(headers, values):
            field = _CSV_FIELD_ALIASES.get(header)
            if field:
                row[field] = value.strip()

        if not row.get("title"):
            logger.warning(f"Row {line_number}: Missing title, skipping")
            continue

        tasks.append(
            ExportedTask(
                title=row["title"],
                description=row.get("description") or None,
                completed=_parse_completed(row.get("completed", "")),
                category=row.get("category") or None,
                priority=_normalize_priority(row.get("priority")),
                created_at=row.get("created_at") or now,
                updated_at=row.get("updated_at") or now,
            )
        )
    return tasks


def import_tasks(data: str, import_format: ExportFormat) -> list[ExportedTask]:
    """
    Parse JSON or CSV into exported-task rows

    Raises:
        ValidationException: If the payload cannot be parsed, or a JSON row
            has no title (CSV rows without a title are skipped instead)
    """
    import_format = ExportFormat(import_format)
    if import_format == ExportFormat.JSON:
        return _import_json(data)
    return _import_csv(data)


async def export_from(
    task_repository: TaskRepository,
    category_repository: CategoryRepository,
    export_format: ExportFormat,
) -> str:
    """Export every stored task, newest first"""
    categories = await category_repository.get_all()
    tasks = await task_repository.get_all()
    names = {category.id: category.name for category in categories}
    return export_tasks(to_exported(tasks, names), export_format)


async def import_tasks_into(
    task_repository: TaskRepository,
    category_repository: CategoryRepository,
    rows: list[ExportedTask],
) -> ImportResponse:
    """
    Create tasks from imported rows

    Category names are resolved case-insensitively; missing categories are
    created. Each task goes through the repository and so gets its own
    outbox record.
    """
    category_ids: dict[str, str] = {}
    imported = 0

    for row in rows:
        category_id = None
        if row.category:
            key = row.category.strip().lower()
            if key not in category_ids:
                category = await category_repository.get_by_name(row.category)
                if category is None:
                    category = await category_repository.create_category(
                        {"name": row.category.strip(), "color": IMPORTED_CATEGORY_COLOR}
                    )
                category_ids[key] = category.id
            category_id = category_ids[key]

        await task_repository.create(
            {
                "title": row.title,
                "description": row.description,
                "completed": row.completed,
                "priority": _normalize_priority(row.priority),
                "category_id": category_id,
            }
        )
        imported += 1

    logger.info(f"Imported {imported} tasks")
    return ImportResponse(imported=imported, skipped=0)
