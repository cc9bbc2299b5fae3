# (c) Copyright Datacraft, 2026
"""Alembic environment: runs migrations over the configured async engine."""
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from registrar.core import orm  # noqa: F401
from registrar.core.config import get_settings
from registrar.core.db.base import Base

config = context.config

if config.config_file_name is not None:
	fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
	context.configure(
		url=get_settings().async_db_url,
		target_metadata=target_metadata,
		literal_binds=True,
		dialect_opts={"paramstyle": "named"},
	)

	with context.begin_transaction():
		context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
	context.configure(connection=connection, target_metadata=target_metadata)

	with context.begin_transaction():
		context.run_migrations()


async def run_migrations_online() -> None:
	engine = create_async_engine(get_settings().async_db_url)

	async with engine.connect() as connection:
		await connection.run_sync(do_run_migrations)

	await engine.dispose()


if context.is_offline_mode():
	run_migrations_offline()
else:
	asyncio.run(run_migrations_online())
