"""
Task categorization service
Keyword scoring that suggests a category and priority for a task
"""
import asyncio
import inspect
import logging
import re
from collections.abc import Iterable
from typing import Any, Callable, Optional

from taskly.api.v1.schemas.categorization import Suggestion
from taskly.models.task import TaskPriority

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "Work": [
        "meeting", "project", "deadline", "client", "presentation", "report", "email",
        "conference", "team", "manager", "boss", "office", "business", "proposal",
        "budget", "revenue", "sales", "marketing", "development", "code", "deploy",
        "review", "analysis", "strategy", "planning", "schedule", "interview",
        "training", "workshop", "documentation", "specification", "requirement",
        "sprint", "standup", "scrum", "agile", "task", "feature", "bug", "fix",
        "release", "launch", "demo", "prototype", "testing", "qa", "production",
    ],
    "Personal": [
        "family", "home", "house", "clean", "vacation", "travel", "trip",
        "birthday", "anniversary", "friend", "hobby", "cooking", "recipe",
        "garden", "pet", "car", "maintenance", "repair", "bill", "payment",
        "bank", "insurance", "personal", "self", "relax", "entertainment",
        "movie", "book", "music", "game", "social", "date", "party", "event",
    ],
    "Learning": [
        "study", "learn", "course", "class", "lecture", "exam", "test", "quiz",
        "assignment", "homework", "research", "paper", "thesis", "book", "read",
        "tutorial", "practice", "exercise", "skill", "language", "certification",
        "degree", "university", "college", "school", "education", "knowledge",
        "online course", "mooc", "udemy", "coursera", "youtube", "documentation",
    ],
    "Health": [
        "doctor", "appointment", "health", "exercise", "workout", "gym", "run",
        "walk", "fitness", "diet", "nutrition", "medicine", "therapy", "wellness",
        "medical", "checkup", "hospital", "clinic", "dentist", "mental health",
        "meditation", "yoga", "sleep", "water", "vitamins", "prescription",
    ],
    "Shopping": [
        "buy", "purchase", "shop", "store", "market", "grocery", "groceries",
        "mall", "online shopping", "order", "delivery", "pickup", "supplies",
        "items", "products", "clothes", "food", "household", "essentials",
        "amazon", "walmart", "target", "costco", "ebay", "shopping list",
    ],
    "Finance": [
        "budget", "money", "bank", "payment", "bill", "invoice", "tax", "taxes",
        "investment", "savings", "loan", "credit", "debt", "insurance", "financial",
        "accounting", "expense", "income", "salary", "payroll", "retirement",
    ],
    "Home": [
        "home", "house", "apartment", "clean", "cleaning", "organize", "declutter",
        "maintenance", "repair", "fix", "renovation", "decoration", "furniture",
        "kitchen", "bathroom", "bedroom", "living room", "garage", "yard", "garden",
    ],
    "Travel": [
        "travel", "trip", "vacation", "holiday", "flight", "hotel", "booking",
        "reservation", "passport", "visa", "luggage", "packing", "itinerary",
        "destination", "tourism", "sightseeing", "adventure", "explore",
    ],
}

PRIORITY_KEYWORDS: dict[TaskPriority, list[str]] = {
    TaskPriority.HIGH: [
        "urgent", "asap", "immediately", "critical", "important", "deadline",
        "emergency", "priority", "rush", "quick", "fast", "now", "today",
        "crucial", "vital", "essential", "must", "required", "needed",
    ],
    TaskPriority.MEDIUM: [
        "soon", "week", "month", "plan", "schedule", "organize", "prepare",
        "review", "check", "update", "improve", "optimize", "consider",
    ],
    TaskPriority.LOW: [
        "someday", "maybe", "later", "eventually", "when possible", "nice to have",
        "optional", "extra", "bonus", "if time", "leisure", "hobby",
    ],
}

URGENCY_PATTERN = re.compile(r"(!{2,}|urgent|asap|emergency|critical|deadline)", re.IGNORECASE)
TODAY_PATTERN = re.compile(r"\b(today|now|immediately)\b", re.IGNORECASE)
WEEK_PATTERN = re.compile(r"\b(this week|next week|week)\b", re.IGNORECASE)
LATER_PATTERN = re.compile(r"\b(month|later|someday)\b", re.IGNORECASE)

MAX_CONFIDENCE = 95

FALLBACK_SUGGESTION = Suggestion(category="", priority=TaskPriority.LOW, confidence=0)


def keyword_score(text: str, keywords: Iterable[str]) -> float:
    """
    Score text against a keyword list

    Whole-word hits count 2, substring hits 1, and the sum is boosted by
    keyword density so short, focused titles win over long ones.
    """
    normalized = text.lower()
    score = 0
    matches = 0
    for keyword in keywords:
        keyword = keyword.lower()
        if keyword not in normalized:
            continue
        matches += 1
        if re.search(rf"\b{re.escape(keyword)}\b", normalized):
            score += 2
        else:
            score += 1

    words = max(len(normalized.split()), 1)
    return score * (1 + matches / words)


def _confidence(best: float, scores: Iterable[float]) -> int:
    total = sum(scores)
    return min(round(best / max(total, 1) * 100), MAX_CONFIDENCE)


def determine_category(
    text: str, known_category_names: Optional[Iterable[str]] = None
) -> tuple[str, int]:
    """
    Best matching category name and its confidence

    When `known_category_names` is given only those categories compete
    (matched case-insensitively), and the known spelling is returned.
    """
    table = CATEGORY_KEYWORDS
    if known_category_names is not None:
        known = {name.lower(): name for name in known_category_names}
        table = {
            known[name.lower()]: keywords
            for name, keywords in CATEGORY_KEYWORDS.items()
            if name.lower() in known
        }

    if not text or not table:
        return "", 0

    scores = {name: keyword_score(text, keywords) for name, keywords in table.items()}
    best_name = max(scores, key=scores.get)
    best = scores[best_name]
    if best < 1:
        return "", 0
    return best_name, _confidence(best, scores.values())


def determine_priority(text: str) -> tuple[TaskPriority, int]:
    """Most likely priority from urgency words and time hints"""
    if not text:
        return TaskPriority.LOW, 0

    scores = {
        priority: keyword_score(text, keywords)
        for priority, keywords in PRIORITY_KEYWORDS.items()
    }

    if URGENCY_PATTERN.search(text):
        scores[TaskPriority.HIGH] += 5

    if TODAY_PATTERN.search(text):
        scores[TaskPriority.HIGH] += 3
    elif WEEK_PATTERN.search(text):
        scores[TaskPriority.MEDIUM] += 2
    elif LATER_PATTERN.search(text):
        scores[TaskPriority.LOW] += 2

    best_priority = max(scores, key=scores.get)
    best = scores[best_priority]
    if best < 1:
        return TaskPriority.LOW, 0
    return best_priority, _confidence(best, scores.values())


def categorize(
    title: str,
    description: Optional[str] = None,
    known_category_names: Optional[Iterable[str]] = None,
) -> Suggestion:
    """
    Suggest a category and priority for a task

    Args:
        title: Task title; a blank title yields the empty suggestion
        description: Optional task description
        known_category_names: Restrict category suggestions to these names

    Returns:
        Suggestion whose confidence averages the category and priority scores
    """
    if not title or not title.strip():
        return FALLBACK_SUGGESTION.model_copy()

    text = f"{title} {description or ''}".strip()
    category, category_confidence = determine_category(text, known_category_names)
    priority, priority_confidence = determine_priority(text)

    return Suggestion(
        category=category,
        priority=priority,
        confidence=round((category_confidence + priority_confidence) / 2),
    )


def batch_categorize(
    tasks: Iterable[tuple[str, Optional[str]]],
    known_category_names: Optional[Iterable[str]] = None,
) -> list[Suggestion]:
    names = list(known_category_names) if known_category_names is not None else None
    return [categorize(title, description, names) for title, description in tasks]


def get_category_suggestions(partial_title: str, limit: int = 3) -> list[str]:
    """Top category names for text typed so far (needs at least 3 characters)"""
    if len(partial_title.strip()) < 3:
        return []
    scored = [
        (name, keyword_score(partial_title, keywords))
        for name, keywords in CATEGORY_KEYWORDS.items()
    ]
    scored = [item for item in scored if item[1] > 0]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [name for name, _ in scored[:limit]]


async def suggest_for_task(
    title: str,
    description: Optional[str] = None,
    known_category_names: Optional[Iterable[str]] = None,
    categorizer: Optional[Callable[..., Any]] = None,
    timeout: float = 5.0,
) -> Suggestion:
    """
    Run a categorizer with a timeout, falling back to the empty suggestion

    `categorizer` may be a plain function or a coroutine function with the
    signature of `categorize`; it defaults to the keyword scorer.
    Never raises.
    """
    categorizer = categorizer or categorize
    names = list(known_category_names) if known_category_names is not None else None

    try:
        if inspect.iscoroutinefunction(categorizer):
            result = await asyncio.wait_for(categorizer(title, description, names), timeout)
        else:
            result = categorizer(title, description, names)
        return Suggestion.model_validate(result)
    except asyncio.TimeoutError:
        logger.warning(f"Categorizer timed out after {timeout}s for '{title}'")
    except Exception as e:
        logger.error(f"Categorizer failed for '{title}': {e}", exc_info=True)
    return FALLBACK_SUGGESTION.model_copy()
