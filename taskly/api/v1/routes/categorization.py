"""
Categorization API routes
Suggest a category and priority for a task title
"""
import logging

from fastapi import APIRouter, Depends

from taskly.api.v1.schemas.categorization import CategorizeRequest, Suggestion
from taskly.core.config import settings
from taskly.core.dependencies import get_category_repository
from taskly.repositories.category import CategoryRepository
from taskly.services.categorization import suggest_for_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categorize", tags=["categorization"])


@router.post(
    "",
    response_model=Suggestion,
    summary="Suggest category and priority",
    description=(
        "Keyword based suggestion limited to the categories that exist. "
        "Falls back to an empty suggestion with confidence 0."
    ),
)
async def categorize_task(
    payload: CategorizeRequest,
    categories: CategoryRepository = Depends(get_category_repository),
) -> Suggestion:
    """
    Suggest a category and priority for a task title.

    Args:
        payload: Title and optional description
        categories: Category repository; only existing names are suggested

    Returns:
        Suggestion; the empty suggestion (confidence 0) if categorizing fails or times out
    """
    # get_all is fail-soft, so an unavailable store only narrows the suggestion
    known = [category.name for category in await categories.get_all()]
    return await suggest_for_task(
        payload.title,
        payload.description,
        known_category_names=known,
        timeout=settings.CATEGORIZER_TIMEOUT_SECONDS,
    )
