"""Alembic environment for the Forge schema.

The database URL comes from ``DATABASE_URL`` (``.env`` is loaded first)
and falls back to ``sqlalchemy.url`` in ``alembic.ini``.  Online
migrations reuse :func:`forge.database.engine.create_db_engine`.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from dotenv import load_dotenv

from alembic import context

load_dotenv()

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from forge.database.engine import create_db_engine  # noqa: E402
from forge.database.models import Base  # noqa: E402

target_metadata = Base.metadata


def _database_url() -> str:
    return os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


if context.is_offline_mode():
    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    engine = create_db_engine(_database_url())
    with engine.connect() as connection:
        # SQLite needs table rebuilds for ALTER
        _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()
