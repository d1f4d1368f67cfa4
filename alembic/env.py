"""
Alembic Migration Environment
===============================

What:  Runs the BloomFrame migrations against the record store.
How:   The URL defaults to settings.database_url and can be overridden per
       run with `alembic -x url=...`. SQLite URLs run in batch mode, since
       SQLite cannot ALTER most column properties in place. Online
       migrations go through the async engine via connection.run_sync().
"""

import asyncio
from logging.config import fileConfig
from typing import Any, Dict

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from bloomframe.config import settings
from bloomframe.database import Base

# Registers every table on Base.metadata for --autogenerate
from bloomframe.models.customer import Customer  # noqa: F401
from bloomframe.models.email_log import EmailLog  # noqa: F401
from bloomframe.models.order import Order, OrderFrameItem, OrderPaperweightItem  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def migration_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.database_url


def migration_options(url: str) -> Dict[str, Any]:
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting to the database."""
    url = migration_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **migration_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def apply_migrations(connection: Connection, url: str) -> None:
    context.configure(connection=connection, **migration_options(url))
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = migration_url()
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(apply_migrations, url)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
