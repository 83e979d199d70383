"""
Alembic environment configuration.
Reads DATABASE_URL from the launchpad settings so migrations and the API
always target the same database.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

# Load launchpad settings (reads from .env via pydantic-settings)
from launchpad.core.config import settings

# Import all models so Alembic can detect schema changes via autogenerate
from launchpad.core.database import Base
from launchpad.models import account, curve, global_config  # noqa: F401

# Alembic Config object provides access to values in alembic.ini
alembic_config = context.config

# Inject the DATABASE_URL from launchpad settings into Alembic config
alembic_config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

# Configure Python logging from the ini file
if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

# Target metadata for autogenerate support
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations without an active DB connection ('offline' mode).
    Generates SQL scripts without connecting.
    """
    url = alembic_config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations with an active DB connection."""
    connectable = engine_from_config(
        alembic_config.get_section(alembic_config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # U64 renders as NUMERIC(20, 0) or text depending on dialect
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
