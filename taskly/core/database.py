"""
Database connection and session management
Uses SQLAlchemy async engine over an embedded SQLite file (aiosqlite driver)
Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""
import logging

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from taskly.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the process-wide async engine for the task store.

    SQLite only enforces foreign keys (and therefore ON DELETE CASCADE)
    when the pragma is enabled on every new connection.
    Reference: https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#foreign-key-support
    """
    new_engine = create_async_engine(database_url, echo=echo)

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory used by every repository.

    expire_on_commit=False keeps returned entities readable after the
    transaction that produced them has been committed.
    """
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Single embedded store handle, created once and reused
engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
async_session_maker = build_session_maker(engine)


# Base class for all database models
# Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models"""
    pass


async def init_db(bind: AsyncEngine) -> None:
    """
    Create any missing tables.

    Alembic owns schema evolution; this only bootstraps a fresh local store.
    """
    # Models must be imported so their tables are registered on Base.metadata
    import taskly.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


async def check_connection(bind: AsyncEngine) -> bool:
    """Return True when the store answers a trivial query"""
    try:
        async with bind.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connectivity check failed: {e}")
        return False
