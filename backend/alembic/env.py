"""
alembic/env.py

Alembic environment configuration for database migrations.
- Supports both offline and asynchronous online migration contexts.
- Loads SQLAlchemy engine and metadata from project base.
"""

from logging.config import fileConfig
from alembic import context

# --- Load SQLAlchemy base metadata and engine ---
from estate_reviews.database.session import engine as async_engine
from estate_reviews.database.base import Base

# --- Import models to ensure they are registered with SQLAlchemy and visible to Alembic ---
from estate_reviews.database import models  # noqa: F401
from estate_reviews.review import models as review_models  # noqa: F401


# --- Alembic config and logger ---
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode (no DB connection needed).
    """
    context.configure(
        url=str(async_engine.url),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """
    Run migrations in 'online' mode using async engine.
    """
    async with async_engine.begin() as conn:
        await conn.run_sync(
            lambda sync_conn: context.configure(
                connection=sync_conn,
                target_metadata=target_metadata,
                compare_type=True,
                compare_server_default=True,
            )
        )
        await conn.run_sync(lambda sync_conn: context.run_migrations())


# --- Entry point ---
if context.is_offline_mode():
    run_migrations_offline()
else:
    import asyncio

    asyncio.run(run_migrations_online())
