"""
Alembic environment for the taskly store

The URL comes from `alembic -x url=...`, then alembic.ini, then
DATABASE_URL from the settings (with the async driver suffix dropped).
Reference: https://alembic.sqlalchemy.org/en/latest/tutorial.html
"""
from logging.config import fileConfig

from sqlalchemy import engine_from_config, event, pool

from alembic import context

from taskly.core.config import settings
from taskly.core.database import Base
import taskly.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

url_override = context.get_x_argument(as_dictionary=True).get("url")
if url_override:
    config.set_main_option("sqlalchemy.url", url_override.replace("%", "%%"))
elif not config.get_main_option("sqlalchemy.url"):
    # ConfigParser interpolates %, so escape it
    config.set_main_option("sqlalchemy.url", settings.sync_database_url.replace("%", "%%"))

target_metadata = Base.metadata


def _enable_foreign_keys(connectable) -> None:
    if connectable.dialect.name != "sqlite":
        return

    @event.listens_for(connectable, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def run_migrations_offline() -> None:
    """Emit SQL for the configured URL without connecting"""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate a live store"""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    _enable_foreign_keys(connectable)

    with connectable.connect() as connection:
        # SQLite cannot ALTER most constraints; batch mode recreates the table
        # Reference: https://alembic.sqlalchemy.org/en/latest/batch.html
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
