import os
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from sqlmodel import SQLModel

from alembic import context
from src.feedback.core.config import get_settings

# Registers the projects and comments tables on SQLModel.metadata
from src.feedback.models import Comment, Project  # noqa: F401

config = context.config

if config.config_file_name is not None and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


def sync_database_url() -> str:
    """DATABASE_URL with the async driver swapped for its sync default.

    An explicit ``sqlalchemy.url`` in the Alembic config wins.
    """
    explicit = config.get_main_option("sqlalchemy.url")
    if explicit:
        return explicit
    url = get_settings().database_url
    return url.replace("+asyncpg", "").replace("+aiosqlite", "")


def _configure(database_url: str, **kwargs: object) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most things in place
        render_as_batch=database_url.startswith("sqlite"),
        **kwargs,
    )


if context.is_offline_mode():
    url = sync_database_url()
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()
else:
    url = sync_database_url()
    connectable = create_engine(url, poolclass=pool.NullPool)
    try:
        with connectable.connect() as connection:
            _configure(url, connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()
