import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from app.config.config import settings
from app.db.base import Base
import app.models  # noqa: F401  registers every table on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    """
    URL to migrate.

    ``alembic -x db_url=...`` wins over the application settings so a
    scratch or test database can be migrated without touching ``.env``.
    """
    return context.get_x_argument(as_dictionary=True).get("db_url") or settings.DATABASE_URL


def configure_context(**kwargs) -> None:
    url = kwargs.get("url")
    dialect = kwargs["connection"].dialect.name if "connection" in kwargs else url.split(":")[0]
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=dialect.startswith("sqlite"),
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    configure_context(url=database_url(), literal_binds=True)


def do_run_migrations(connection: Connection) -> None:
    configure_context(connection=connection)


async def run_migrations_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)

    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
