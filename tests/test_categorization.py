# tests/test_categorization.py

import asyncio

from taskly.api.v1.schemas.categorization import Suggestion
from taskly.models.task import TaskPriority
from taskly.services.categorization import (
    batch_categorize,
    categorize,
    get_category_suggestions,
    keyword_score,
    suggest_for_task,
)


def test_shopping_title() -> None:
    suggestion = categorize("Buy groceries at the store")
    assert suggestion.category == "Shopping"
    assert suggestion.priority == TaskPriority.LOW
    assert 0 < suggestion.confidence <= 100


def test_urgent_work_item_is_high_priority() -> None:
    suggestion = categorize("Urgent: fix production bug today")
    assert suggestion.category == "Work"
    assert suggestion.priority == TaskPriority.HIGH


def test_blank_title_gives_empty_suggestion() -> None:
    suggestion = categorize("   ", "anything")
    assert suggestion == Suggestion(category="", priority=TaskPriority.LOW, confidence=0)


def test_known_categories_restrict_and_keep_spelling() -> None:
    assert categorize("Buy groceries", known_category_names=["Work"]).category == ""
    assert categorize("Buy groceries", known_category_names=["shopping"]).category == "shopping"
    assert categorize("Buy groceries", known_category_names=[]).category == ""


def test_whole_words_score_higher_than_substrings() -> None:
    assert keyword_score("go running", ["run"]) < keyword_score("go run", ["run"])
    assert keyword_score("nothing here", ["run"]) == 0


def test_batch_and_partial_suggestions() -> None:
    results = batch_categorize([("Book flight and hotel", None), ("Dentist appointment", "")])
    assert [r.category for r in results] == ["Travel", "Health"]

    assert get_category_suggestions("gy") == []
    assert get_category_suggestions("gym workout")[0] == "Health"


async def test_suggest_for_task_uses_keyword_scorer_by_default() -> None:
    suggestion = await suggest_for_task("Buy groceries", known_category_names=["Shopping"])
    assert suggestion.category == "Shopping"


async def test_suggest_for_task_accepts_async_categorizer() -> None:
    async def remote(title, description, names):
        return {"category": "Remote", "priority": "medium", "confidence": 80}

    suggestion = await suggest_for_task("anything", categorizer=remote)
    assert suggestion == Suggestion(category="Remote", priority=TaskPriority.MEDIUM, confidence=80)


async def test_suggest_for_task_falls_back_on_timeout() -> None:
    async def slow(title, description, names):
        await asyncio.sleep(1)
        return Suggestion(category="Late")

    suggestion = await suggest_for_task("anything", categorizer=slow, timeout=0.01)
    assert suggestion == Suggestion(category="", priority=TaskPriority.LOW, confidence=0)


async def test_suggest_for_task_falls_back_on_error() -> None:
    def broken(title, description, names):
        raise RuntimeError("model unavailable")

    suggestion = await suggest_for_task("anything", categorizer=broken)
    assert suggestion.category == ""
    assert suggestion.confidence == 0
