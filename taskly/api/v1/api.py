"""
API v1 router aggregation
Combines all v1 route handlers into a single router
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
from fastapi import APIRouter

from taskly.api.v1.routes import (
    categorization,
    category,
    export_import,
    health,
    subtask,
    sync,
    task,
    time_session,
)
from taskly.core.config import settings


# All v1 routes are prefixed with /api/v1
api_router = APIRouter(prefix=settings.API_V1_PREFIX)

api_router.include_router(task.router)
api_router.include_router(category.router)
api_router.include_router(subtask.router)
api_router.include_router(time_session.router)
api_router.include_router(sync.router)
api_router.include_router(categorization.router)
api_router.include_router(export_import.router)
api_router.include_router(health.router)
