"""Alembic environment for the Lectio schema."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from lectio.config import get_settings
from lectio.db.base import Base
from lectio.db import models  # noqa: F401 - registers every table on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """
    Sync (psycopg2) URL for migrations.

    ``-x url=...`` on the command line wins over the application settings.
    """
    return context.get_x_argument(as_dictionary=True).get("url") or get_settings().database_url_sync


def run_migrations_offline() -> None:
    """Emit SQL to the script output instead of running it."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the database with a throwaway sync engine."""
    connect_args = {"sslmode": "require"} if get_settings().database_requires_ssl else {}
    connectable = create_engine(get_url(), poolclass=pool.NullPool, connect_args=connect_args)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
