"""
Application configuration settings
Handles environment variables and configuration management
Values can be set in a .env file or as environment variables
Reference: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""
from typing import Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    Uses pydantic BaseSettings for validation and type conversion

    Every value has a local default so the app runs against an embedded
    SQLite file without any configuration.
    """
    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Taskly"
    VERSION: str = "0.1.0"

    # Database Configuration
    # SQLite connection string format: sqlite+aiosqlite:///path/to/file.db
    # Reference: https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#module-sqlalchemy.dialects.sqlite.aiosqlite
    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./taskly.db",
        description="Async SQLAlchemy URL of the embedded task store."
    )
    SQL_ECHO: bool = Field(False, description="Log every SQL statement")

    # Sync Configuration
    # 0 disables the background auto-sync loop; sync then only runs on demand
    SYNC_INTERVAL_SECONDS: float = Field(
        0,
        ge=0,
        description="Seconds between automatic outbox drains (0 = manual only)"
    )

    # Remote sync endpoint
    # When unset, sync records are acknowledged locally and never leave the device
    SYNC_REMOTE_URL: Optional[str] = Field(
        None,
        description="Base URL that receives pushed sync records (POST {url}/{table_name})"
    )
    SYNC_REMOTE_TOKEN: Optional[str] = Field(None, description="Bearer token for the sync endpoint")
    SYNC_REMOTE_TIMEOUT_SECONDS: float = Field(10.0, gt=0)

    # Categorization
    CATEGORIZER_TIMEOUT_SECONDS: float = Field(
        2.0,
        gt=0,
        description="Upper bound for a single categorization call before falling back"
    )

    # Seeding
    SEED_DEFAULT_CATEGORIES: bool = Field(
        True, description="Create the starter categories on startup when missing"
    )
    SEED_DEMO_DATA: bool = Field(
        False, description="Insert demo tasks on startup when the store is empty"
    )

    LOG_LEVEL: str = "INFO"

    # Alembic Configuration
    # Used for database migrations
    # Reference: https://alembic.sqlalchemy.org/en/latest/tutorial.html
    ALEMBIC_CONFIG: str = "alembic.ini"

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case (e.g. 'debug')"""
        return v.strip().upper()

    @property
    def sync_database_url(self) -> str:
        """
        Synchronous variant of DATABASE_URL.

        Alembic runs migrations with sync drivers, so the async driver
        suffix is stripped (sqlite+aiosqlite -> sqlite).
        """
        return self.DATABASE_URL.replace("+aiosqlite", "")

    # Pydantic v2 configuration
    # Reference: https://docs.pydantic.dev/latest/api/config/
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
# Import this in other modules to access configuration
settings = Settings()
