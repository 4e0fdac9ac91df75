"""Alembic environment configuration for X-Ray.

Reads DATABASE_URL from the environment (falling back to alembic.ini).
Imports the ORM models so autogenerate sees both tables.
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from xray.core.settings import Settings
from xray.models import Base

config = context.config

# DATABASE_URL (or its default) wins over alembic.ini
config.set_main_option("sqlalchemy.url", Settings.from_env().database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL script output only)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # SQLite ALTER TABLE support
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (live database connection)."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
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
