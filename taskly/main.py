"""
FastAPI application entry point
Main application factory and configuration
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from taskly.api.v1.api import api_router
from taskly.core.config import settings
from taskly.core.database import build_session_maker, engine as default_engine, init_db
from taskly.services.container import ServiceContainer, build_container
from taskly.services.remote import get_remote_push
from taskly.services.seed import seed_default_categories, seed_demo_data
from taskly.services.sync import PushFn

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    Creates missing tables, seeds starter data and runs the periodic sync
    Reference: https://fastapi.tiangolo.com/advanced/events/
    """
    container: ServiceContainer = app.state.container
    store: AsyncEngine = app.state.engine

    try:
        await init_db(store)
        logger.info("✓ Task store ready")
    except Exception as e:
        logger.error(f"✗ Task store initialization failed: {e}")
        # Let the app start so health checks can report the problem

    if settings.SEED_DEFAULT_CATEGORIES:
        try:
            await seed_default_categories(container.categories)
        except Exception as e:
            logger.error(f"Seeding default categories failed: {e}")

    if settings.SEED_DEMO_DATA:
        try:
            await seed_demo_data(container.tasks, container.categories)
        except Exception as e:
            logger.error(f"Seeding demo data failed: {e}")

    sync_task: Optional[asyncio.Task] = None
    if settings.SYNC_INTERVAL_SECONDS > 0:
        sync_task = asyncio.create_task(container.sync.run_periodic(settings.SYNC_INTERVAL_SECONDS))

    yield

    if sync_task is not None:
        sync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sync_task

    await store.dispose()
    logger.info("Database connections closed")


def create_app(engine: Optional[AsyncEngine] = None, push: Optional[PushFn] = None) -> FastAPI:
    """
    Build the FastAPI application around one task store

    Args:
        engine: Async engine for the task store; the configured one by default
        push: Remote push used by the sync service; the configured endpoint
            (SYNC_REMOTE_URL) by default, otherwise a local no-op
    """
    store = engine or default_engine
    if push is None:
        push = get_remote_push()

    # Reference: https://fastapi.tiangolo.com/reference/fastapi/
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Offline-first task manager with a sync outbox",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.engine = store
    application.state.container = build_container(build_session_maker(store), push=push)

    application.include_router(api_router)

    @application.get("/")
    async def root():
        """
        Root endpoint
        Provides basic information about the API
        """
        return {
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "docs": "/docs",
        }

    return application


app = create_app()
